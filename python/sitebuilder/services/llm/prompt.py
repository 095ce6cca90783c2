"""Provider-agnostic prompt rendering for site generation.

prompt.py produces lists of Turn objects; the adapter handles conversion
to the provider wire format.

Two calls are made per revision:
- Enhancement: turns a terse user request into a specific, actionable one
- Document generation: rewrites (or creates) a complete HTML document

Validation:
- Total prompt size must not exceed max_chars (400,000 default)
"""

from sitebuilder.services.llm.types import Turn

ENHANCE_SYSTEM_PROMPT = """You are a prompt enhancement specialist. The user wants to make changes to their website. Enhance their request to be more specific and actionable for a web developer.

Enhance this by:
1. Being specific about what elements to change
2. Mentioning design details (colors, spacing, sizes)
3. Clarifying the desired outcome
4. Using clear technical terms

Return ONLY the enhanced request, nothing else. Keep it concise (1-2 sentences)."""

CREATE_ENHANCE_SYSTEM_PROMPT = """You are a prompt enhancement specialist. The user wants a new website. Expand their description into a clear brief for a web developer.

Include:
1. The sections the page should have
2. Design details (color palette, typography, spacing)
3. The tone of the copy
4. Any interactive behavior

Return ONLY the enhanced brief, nothing else. Keep it concise (2-4 sentences)."""

REVISE_SYSTEM_PROMPT = """You are an expert web developer.

CRITICAL REQUIREMENTS:
- Return ONLY the complete updated HTML code with the requested changes.
- Use Tailwind CSS for ALL styling (NO custom CSS).
- Use Tailwind utility classes for all styling changes.
- Include all JavaScript in <script> tags before closing </body>
- Make sure it's a complete, standalone HTML document with Tailwind CSS
- Return the HTML Code Only, nothing else

Apply the requested changes while maintaining the Tailwind CSS styling approach."""

CREATE_SYSTEM_PROMPT = """You are an expert web developer. Build a single-page website from the brief you are given.

CRITICAL REQUIREMENTS:
- Return ONLY a complete, standalone HTML document.
- Load Tailwind CSS from its CDN script and use Tailwind utility classes for ALL styling (NO custom CSS).
- Make the layout responsive.
- Include all JavaScript in <script> tags before closing </body>
- Use placeholder images from https://placehold.co where images are needed
- Return the HTML Code Only, nothing else"""

MAX_PROMPT_CHARS = 400_000


class PromptTooLargeError(Exception):
    """Raised when rendered prompt exceeds size limit."""

    def __init__(self, actual_size: int, max_size: int):
        self.actual_size = actual_size
        self.max_size = max_size
        super().__init__(f"Prompt size {actual_size} exceeds max {max_size}")


def render_enhance_prompt(request_text: str, *, creating: bool = False) -> list[Turn]:
    """Build the turns for the prompt-enhancement call."""
    system = CREATE_ENHANCE_SYSTEM_PROMPT if creating else ENHANCE_SYSTEM_PROMPT
    return [
        Turn(role="system", content=system),
        Turn(role="user", content=f'User\'s request: "{request_text}"'),
    ]


def render_document_prompt(current_code: str | None, instruction: str) -> list[Turn]:
    """Build the turns for the document-generation call.

    With no current document the create-from-scratch prompt is used.
    """
    if not current_code:
        return [
            Turn(role="system", content=CREATE_SYSTEM_PROMPT),
            Turn(role="user", content=f'Build this website: "{instruction}"'),
        ]

    return [
        Turn(role="system", content=REVISE_SYSTEM_PROMPT),
        Turn(
            role="user",
            content=(
                f'Here is the current website code: "{current_code}" '
                f'The user wants this change: "{instruction}"'
            ),
        ),
    ]


def estimate_prompt_chars(turns: list[Turn]) -> int:
    """Total character count across all turns."""
    return sum(len(turn.content) for turn in turns)


def validate_prompt_size(turns: list[Turn], max_chars: int = MAX_PROMPT_CHARS) -> None:
    """Raise PromptTooLargeError if the rendered prompt exceeds max_chars."""
    total = estimate_prompt_chars(turns)
    if total > max_chars:
        raise PromptTooLargeError(total, max_chars)
