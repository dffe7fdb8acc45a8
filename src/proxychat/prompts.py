PLAIN_TEXT_INSTRUCTION = (
    "IMPORTANT: Write your response in plain text only. Do not use Markdown "
    "formatting (no bold, italics, headers, or code blocks)."
)

TITLE_PROMPT = (
    "Summarize the following message into a short title (max 4 words). "
    "IMPORTANT: The title must be in the same language as the message. "
    "Do not use quotes.\n\nMessage: {message}"
)

# Loading-indicator frames written into a pending reply.
GENERATING_FRAMES = ("Generating", "Generating.", "Generating..", "Generating...")

# Texts starting with these are indicator frames, never real content.
PLACEHOLDER_PREFIXES = ("Generating", "Ожидание")


def render_title_prompt(message: str) -> str:
    return TITLE_PROMPT.format(message=message)
