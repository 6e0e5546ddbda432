import re


EMOJI_PATTERN = re.compile(
    "["
    "\U0001F600-\U0001F64F"
    "\U0001F300-\U0001F5FF"
    "\U0001F680-\U0001F6FF"
    "\U0001F1E0-\U0001F1FF"
    "\u2600-\u26FF"
    "\u2700-\u27BF"
    "]"
)
SECTION_HEADINGS = (
    "Action plan",
    "Suggested schedule",
    "Watch out for",
    "Considerations",
    "Recommendations",
)
SECTION_PATTERN = re.compile(r"(%s):[ \t]*\n*" % "|".join(re.escape(h) for h in SECTION_HEADINGS))


def clean_ai_response(text):
    """
    Strip chat-model decoration from a suggestion so it reads as plain notes.

    Removes emoji, markdown emphasis and tildes, gives section headings and
    list blocks a blank line of breathing room, puts each sentence on its
    own line, and collapses runs of spaces and blank lines.
    """
    if not text:
        return ""
    cleaned = EMOJI_PATTERN.sub("", str(text))
    cleaned = re.sub(r"\*\*(.*?)\*\*", r"\1", cleaned)
    cleaned = re.sub(r"\*(.*?)\*", r"\1", cleaned)
    cleaned = re.sub(r"~~(.*?)~~", r"\1", cleaned)
    cleaned = cleaned.replace("~", "")
    cleaned = SECTION_PATTERN.sub(r"\1:\n\n", cleaned)
    cleaned = re.sub(r"([^\n])\n(\d+\.\s)", r"\1\n\n\2", cleaned)
    cleaned = re.sub(r"([^\n])\n(-\s)", r"\1\n\n\2", cleaned)
    # Sentence breaks, but not after list numbers like "1."
    cleaned = re.sub(r"(?<!\d)([.!?])[ \t]+(\S)", r"\1\n\2", cleaned)
    cleaned = re.sub(r"[ \t]+", " ", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned)
    return cleaned.strip()
