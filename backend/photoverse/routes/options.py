"""
PhotoVerse Backend — Style & Mood Options Route
=================================================

What:  GET /api/options: the six styles and six moods with es/en labels.
Why:   The values the client posts back must match the server's enums;
       serving them avoids a second copy in the frontend.
"""

from fastapi import APIRouter, Query

from photoverse.schemas.poem import (
    MOOD_LABELS,
    STYLE_LABELS,
    OptionLabel,
    OptionsResponse,
    SelectionOption,
)

router = APIRouter(prefix="/api", tags=["Options"])


def _options(labels, language: str):
    return [
        SelectionOption(
            id=member.value,
            label=OptionLabel(**names),
            display=names[language],
        )
        for member, names in labels.items()
    ]


@router.get(
    "/options",
    response_model=OptionsResponse,
    summary="List poem styles and moods",
)
async def list_options(
    language: str = Query("es", pattern="^(es|en)$", description="Language for `display`"),
) -> OptionsResponse:
    return OptionsResponse(
        styles=_options(STYLE_LABELS, language),
        moods=_options(MOOD_LABELS, language),
    )
