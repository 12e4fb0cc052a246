import re

BOLD = re.compile(r"\*\*")
# "1. Text" -> "• Text"
NUMBERED_LINE = re.compile(r"^(\d+)\. (.+)$", re.MULTILINE)
# "(Paris) visit the tower" -> "• Paris: visit the tower"
LABELLED_LINE = re.compile(r"^\s*\(([^)]+)\)\s*(.+)$", re.MULTILINE)


def format_bot_response(text: str) -> str:
    """Strip bold markers and turn numbered or labelled lines into bullets."""
    formatted = BOLD.sub("", text)
    formatted = NUMBERED_LINE.sub(r"• \2", formatted)
    formatted = LABELLED_LINE.sub(r"• \1: \2", formatted)
    return formatted
