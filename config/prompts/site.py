"""Site generation prompts — initial generation and follow-up edits.

The output-format sections embed the marker tokens from
:mod:`config.prompts.markers`; the patch engine parses exactly what these
prompts ask for.
"""

from __future__ import annotations

from config.prompts.markers import (
    DIVIDER,
    NEW_PAGE_END,
    NEW_PAGE_START,
    PROJECT_NAME_END,
    PROJECT_NAME_START,
    REPLACE_END,
    SEARCH_START,
    TITLE_PAGE_END,
    TITLE_PAGE_START,
    UPDATE_PAGE_END,
    UPDATE_PAGE_START,
)
from models.request import EnhancedSettings, ImageRef
from models.site import ChatMessage, Page

PROMPT_FOR_IMAGE_GENERATION = """\
If you want to use image placeholder, http://static.photos Usage: \
Format: http://static.photos/[category]/[dimensions]/[seed] where dimensions \
must be one of: 200x200, 320x240, 640x360, 1024x576, or 1200x630; seed can be \
any number (1-999+) for consistent images or omit for random; categories \
include: nature, office, people, technology, minimal, abstract, cityscape, \
workspace, food, travel, finance, medical, sport, science, education.
Examples: http://static.photos/red/320x240/133, http://static.photos/640x360, \
http://static.photos/nature/1200x630/42."""

PROMPT_FOR_PROJECT_NAME = """\
REQUIRED: Generate a name for the project, based on the user's request. \
Try to be creative and unique. Add an emoji at the end of the name. It should \
be short, like 6 words. Be fancy, creative and funny. DON'T FORGET IT, IT'S \
IMPORTANT!"""

DESIGN_GUIDELINES = """\
## Technical Requirements:
- ALWAYS use TailwindCSS via CDN: <script src="https://cdn.tailwindcss.com"></script>
- Use Feather Icons: <script src="https://cdn.jsdelivr.net/npm/feather-icons/dist/feather.min.js"></script>
- Add subtle animations with Anime.js when useful
- Mobile-first responsive layouts, semantic HTML, WCAG AA contrast
- Create multi-page websites when the user requests different pages
- Use only href for navigation, never onclick"""

INITIAL_SYSTEM_PROMPT = f"""\
You are an expert UI/UX Designer and Front-End Developer specializing in \
modern, production-quality interfaces. You create websites using HTML, CSS \
and JavaScript.

{DESIGN_GUIDELINES}

{PROMPT_FOR_IMAGE_GENERATION}
{PROMPT_FOR_PROJECT_NAME}

## Output Format:
Return results in ```html``` markdown blocks. Format as:

1. Start with {PROJECT_NAME_START}
2. Add creative project name with emoji
3. Close with {PROJECT_NAME_END}
4. For each page:
   - Start with {TITLE_PAGE_START}
   - Add filename (e.g., index.html, about.html)
   - Close with {TITLE_PAGE_END}
   - Add HTML in ```html code block

Example:
{PROJECT_NAME_START}Stellar Dashboard ✨{PROJECT_NAME_END}
{TITLE_PAGE_START}index.html{TITLE_PAGE_END}
```html
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Stellar Dashboard</title>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body class="bg-gray-50 antialiased">
    <main class="container mx-auto px-4 py-8">
        <h1 class="text-4xl font-bold tracking-tight">Hello World</h1>
    </main>
</body>
</html>
```

IMPORTANT:
- First file MUST be named index.html
- No explanations needed - just return the code
- If the user provides images, use their src paths exactly as given"""

FOLLOW_UP_SYSTEM_PROMPT = f"""\
You are an expert UI/UX Designer and Front-End Developer modifying existing \
HTML files. Apply changes to enhance or extend the website based on user \
requests.

{DESIGN_GUIDELINES}

{PROMPT_FOR_IMAGE_GENERATION}

## Output Rules:
- Output ONLY the changes using UPDATE_PAGE_START and SEARCH/REPLACE format
- Do NOT output entire files
- For new pages, use NEW_PAGE_START format

## Update Format:
1. {PROJECT_NAME_START}Project Name{PROJECT_NAME_END}
2. {UPDATE_PAGE_START}filename.html{UPDATE_PAGE_END}
3. {SEARCH_START}
   [exact lines to replace]
{DIVIDER}
   [new replacement lines]
{REPLACE_END}

Example - Modifying Code:
{UPDATE_PAGE_START}index.html{UPDATE_PAGE_END}
{SEARCH_START}
    <h1 class="text-2xl">Old Title</h1>
{DIVIDER}
    <h1 class="text-4xl font-bold">New Title</h1>
{REPLACE_END}

Example - Adding New Page:
{NEW_PAGE_START}about.html{NEW_PAGE_END}
```html
<!DOCTYPE html>
<html lang="en">
<head><title>About</title></head>
<body><h1>About Us</h1></body>
</html>
```

IMPORTANT:
- When creating new pages, UPDATE ALL OTHER PAGES to add navigation links
- SEARCH blocks must EXACTLY match current code including whitespace
- An empty SEARCH block inserts the replacement at the top of the page
- No explanations - just return the changes"""

UPDATE_USER_CONTEXT = "You are modifying the HTML file based on the user's request."


def build_images_section(images: list[ImageRef]) -> str:
    """Mandatory-image preamble placed before the user's request."""
    if not images:
        return ""

    blocks: list[str] = []
    for i, img in enumerate(images, start=1):
        if "logo" in img.name.lower():
            placement = (
                "Place this logo in the HEADER/NAVBAR of every page, "
                "and optionally in the footer."
            )
        else:
            placement = "Use this image prominently in the design where appropriate."
        blocks.append(
            f'### IMAGE {i}: "{img.name}"\n{placement}\nUSE THIS EXACT SRC: src="{img.url}"'
        )

    return (
        "## CRITICAL: USER-PROVIDED IMAGES - YOU MUST USE THESE\n\n"
        f"I am providing {len(images)} image(s) that MUST be included in the "
        "design. This is NOT optional.\n\n"
        + "\n\n".join(blocks)
        + "\n\n**MANDATORY REQUIREMENTS:**\n"
        "1. You MUST use <img> tags with the EXACT src paths provided above\n"
        "2. Do NOT use placeholder images - use ONLY the paths I provided\n"
        '3. If an image is named "logo" or similar, it MUST appear in the header/navbar\n'
        "4. Use the paths exactly as given\n\n"
        "---\n\n## USER REQUEST:\n"
    )


def build_create_user_prompt(
    *,
    prompt: str = "",
    redesign_markdown: str | None = None,
    enhanced_settings: EnhancedSettings | None = None,
    images: list[ImageRef] | None = None,
) -> str:
    """Build the user message for an initial generation.

    Args:
        prompt: The user's description of the site.
        redesign_markdown: Markdown of an existing design to redesign; takes
            precedence over *prompt*.
        enhanced_settings: Optional color / theme hints.
        images: Uploaded images that must appear in the design.

    Returns:
        The complete user prompt.
    """
    text = build_images_section(images or [])
    if redesign_markdown:
        text += (
            f"Here is my current design as a markdown:\n\n{redesign_markdown}\n\n"
            "Now, please create a new design based on this markdown. "
            "Use the images in the markdown."
        )
    else:
        text += prompt

    if enhanced_settings and enhanced_settings.is_active:
        hints: list[str] = []
        if enhanced_settings.primary_color:
            c = enhanced_settings.primary_color
            hints.append(f"I want to use the following primary color: {c} (eg: bg-{c}-500).")
        if enhanced_settings.secondary_color:
            c = enhanced_settings.secondary_color
            hints.append(f"I want to use the following secondary color: {c} (eg: bg-{c}-500).")
        if enhanced_settings.theme:
            hints.append(f"I want to use the following theme: {enhanced_settings.theme} mode.")
        if hints:
            text += "\n\n" + "\n".join(f"{i}. {h}" for i, h in enumerate(hints, start=1))
    return text


def build_create_messages(user_prompt: str) -> list[ChatMessage]:
    return [
        ChatMessage(role="system", content=INITIAL_SYSTEM_PROMPT),
        ChatMessage(role="user", content=user_prompt),
    ]


def build_update_messages(
    *,
    prompt: str,
    pages: list[Page],
    selected_element_html: str | None = None,
    files: list[str] | None = None,
    is_new: bool = False,
) -> list[ChatMessage]:
    """Build the four-message conversation for a follow-up edit.

    The current pages are serialized into an assistant message so the model
    can quote them back in SEARCH blocks.
    """
    system_prompt = FOLLOW_UP_SYSTEM_PROMPT
    if is_new:
        system_prompt += "\n\n" + PROMPT_FOR_PROJECT_NAME

    pages_context = "\n\n".join(f"- {p.path}\n{p.html}" for p in pages)
    assistant_context = ""
    if selected_element_html:
        assistant_context += (
            "\n\nYou have to update ONLY the following element, NOTHING ELSE: "
            f"\n\n```html\n{selected_element_html}\n``` "
            "Could be in multiple pages, if so, update all the pages."
        )
    assistant_context += f". Current pages ({len(pages)} total): {pages_context}. "
    if files:
        assistant_context += f"Available images: {', '.join(files)}."

    return [
        ChatMessage(role="system", content=system_prompt),
        ChatMessage(role="user", content=UPDATE_USER_CONTEXT),
        ChatMessage(role="assistant", content=assistant_context),
        ChatMessage(role="user", content=prompt),
    ]
