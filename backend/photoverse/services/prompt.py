"""
PhotoVerse Backend — Poem Instruction Builder
===============================================

What:  Builds the natural-language instruction sent with the photo.
Why:   Both providers must receive the same instruction so that a fallback
       poem follows the same rules as a primary one.

The instruction pins down:
    - language, style and mood
    - 2–4 stanzas of 4–6 lines each
    - one rhyme scheme from RHYME_SCHEMES
    - 8–11 syllables per line
    - output as a JSON object with exactly "title" and "poem"
"""

from typing import Dict

from photoverse.schemas.poem import GenerationRequest

RHYME_SCHEMES: Dict[str, str] = {
    "ABAB": "lines 1 and 3 rhyme, lines 2 and 4 rhyme",
    "AABB": "consecutive lines rhyme: 1 with 2, 3 with 4",
    "ABBA": "enclosed rhyme: 1 with 4, 2 with 3",
    "ABCB": "only the even lines rhyme",
}

STANZA_RANGE = (2, 4)
LINES_PER_STANZA = (4, 6)
SYLLABLE_RANGE = (8, 11)

LANGUAGE_NAMES = {"es": "Spanish", "en": "English"}


def build_poem_prompt(request: GenerationRequest) -> str:
    language = request.language
    schemes = "\n".join(f"  * {name} ({desc})" for name, desc in RHYME_SCHEMES.items())
    return (
        f"Analyze this image and write an original poem in {LANGUAGE_NAMES[language]} with a title.\n"
        f"- Poetic style: {request.style.label(language)}.\n"
        f"- Emotional tone: {request.mood.label(language)}.\n"
        f"- Structure: the poem must have between {STANZA_RANGE[0]} and {STANZA_RANGE[1]} stanzas. "
        f"Each stanza must have between {LINES_PER_STANZA[0]} and {LINES_PER_STANZA[1]} lines.\n"
        "- RHYME: the poem MUST keep a consistent, harmonious rhyme. Use one of these schemes:\n"
        f"{schemes}\n"
        f"- METER: keep a similar syllable count on every line (between {SYLLABLE_RANGE[0]} and "
        f"{SYLLABLE_RANGE[1]} syllables) to give the poem rhythm.\n"
        "- Rhymes must sound natural, not forced. Prefer consonant rhyme (vowels and consonants "
        "match from the last stressed vowel).\n"
        '- Reply ONLY with a JSON object with a "title" key for the title and a "poem" key for the '
        "poem. The poem must use '\\n' for line breaks and '\\n\\n' to separate stanzas."
    )
