"""StoryReel MCP Server - authoring and previewing branching slideshows."""

from mcp.server.fastmcp import FastMCP, Context
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Any, Optional
from pathlib import Path

from pydantic import ValidationError

from storyreel.core.errors import MediaUploadError, SlideSaveError, StoryReelError
from storyreel.core.slides import Button, Slide
from storyreel.core.state import SessionState
from storyreel.core.workspace import Workspace
from storyreel.playback import PlaybackSession
from storyreel.webscraping.media import MediaDownloader

from . import config

logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
logger = logging.getLogger("StoryReel")

MEDIA_FIELDS = {"background": "background_url", "character": "character_url"}


# ── Global State ────────────────────────────────────────────────────────

_session_state = SessionState()
_playback: Optional[PlaybackSession] = None
_downloader = MediaDownloader()


def _persist() -> str:
    """Save through the store; returns a note for the tool result."""
    try:
        _session_state.save()
    except SlideSaveError as e:
        logger.error(f"Auto-save failed: {e}")
        return f"not saved ({e}); local changes kept, retry with save_project"
    return "saved" if _session_state.workspace else "not saved (no project open)"


def _media_attr(field: str) -> Optional[str]:
    return MEDIA_FIELDS.get(field)


# ── Server Setup ────────────────────────────────────────────────────────

@asynccontextmanager
async def server_lifespan(server: FastMCP) -> AsyncIterator[Dict[str, Any]]:
    try:
        logger.info("StoryReel MCP server starting up")
        yield {}
    finally:
        global _playback
        if _playback:
            _playback.close()
            _playback = None
        logger.info("StoryReel MCP server shut down")


mcp = FastMCP("StoryReel", lifespan=server_lifespan)


# ═══════════════════════════════════════════════════════════════════════
# PROJECT MANAGEMENT TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def create_project(ctx: Context, project_name: str, base_path: str = "") -> str:
    """Create a new slideshow project with data/ and uploads/ directories.

    Parameters:
    - project_name: Name for the project (used as directory name)
    - base_path: Optional base directory (defaults to ./projects/)
    """
    global _session_state
    base = Path(base_path) if base_path else Path(config.DEFAULT_PROJECTS_DIR)
    project_path = base / project_name
    if project_path.exists():
        return f"Error: Project directory already exists at {project_path}"

    workspace = Workspace(project_name=project_name, root_path=project_path)
    workspace.initialize()
    _session_state = SessionState(workspace=workspace)

    return json.dumps({
        "status": "created",
        "project_name": project_name,
        "path": str(project_path),
        "directories": ["data/", "uploads/"],
    }, indent=2)


@mcp.tool()
def load_project(ctx: Context, project_path: str) -> str:
    """Load an existing slideshow project.

    Parameters:
    - project_path: Path to the project directory
    """
    global _session_state
    try:
        workspace = Workspace.load(Path(project_path))
    except (OSError, ValueError, KeyError) as e:
        return f"Error loading project: {str(e)}"

    _session_state = SessionState(workspace=workspace)
    _session_state.load_slides()
    return json.dumps({
        "status": "loaded",
        "project_name": workspace.project_name,
        "path": str(workspace.root_path),
        "asset_count": len(workspace.assets),
        "slide_count": len(_session_state.slides.slides),
    }, indent=2)


@mcp.tool()
def save_project(ctx: Context) -> str:
    """Save the slide list, replacing what is stored."""
    if not _session_state.workspace:
        return "Error: No project is currently open. Use create_project or load_project first."
    try:
        _session_state.save()
    except SlideSaveError as e:
        return f"Error: {e}. Local changes are kept; try again."
    return f"Project '{_session_state.workspace.project_name}' saved ({len(_session_state.slides.slides)} slides)."


@mcp.tool()
def get_project_status(ctx: Context) -> str:
    """Get the current project status including slide count, assets and branch checks."""
    slides = _session_state.slides
    status = {
        "project_loaded": _session_state.workspace is not None,
        "slide_count": len(slides.slides),
        "unsaved_changes": _session_state.dirty,
        "undo_depth": len(_session_state.undo_stack),
        "dangling_jumps": len(slides.dangling_references()),
        "playback": _playback.view().phase.value if _playback else None,
    }
    ws = _session_state.workspace
    if ws:
        status.update({
            "project_name": ws.project_name,
            "path": str(ws.root_path),
            "asset_count": len(ws.assets),
        })
    else:
        status["message"] = "No project loaded. Use create_project or load_project."
    return json.dumps(status, indent=2)


# ═══════════════════════════════════════════════════════════════════════
# SLIDE TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def get_slides(ctx: Context) -> str:
    """List all slides in play order with their buttons."""
    slides = _session_state.slides
    if not slides.slides:
        return "No slides yet. Use add_slide to create one."
    return json.dumps(slides.to_summary(), indent=2)


@mcp.tool()
def get_slide(ctx: Context, slide_id: str) -> str:
    """Get full details of a specific slide.

    Parameters:
    - slide_id: The ID of the slide to retrieve
    """
    slide = _session_state.slides.get(slide_id)
    if not slide:
        return f"Error: Slide '{slide_id}' not found."
    return json.dumps(slide.to_wire(), indent=2)


@mcp.tool()
def add_slide(ctx: Context, text: str = "", duration: int = 5000,
              background_url: str = "", character_url: str = "",
              character_position: str = "bottom-right") -> str:
    """Append a new slide and save the list.

    Parameters:
    - text: What the character says (revealed letter by letter)
    - duration: Milliseconds before auto-advancing (min 1000; ignored when the slide has buttons)
    - background_url: Image or video URL (.mp4/.webm/.ogg/.mov play as looping video)
    - character_url: Character image URL
    - character_position: bottom-right, bottom-left, center or floating
    """
    try:
        slide = Slide(
            text=text,
            duration=max(1000, duration),
            background_url=background_url,
            character_url=character_url,
            character_position=character_position,
        )
    except ValidationError as e:
        return f"Error: Invalid slide: {e}"

    _session_state.checkpoint("Add slide")
    _session_state.slides.add(slide)
    return json.dumps({"status": "added", "save": _persist(), "slide": slide.to_wire()}, indent=2)


@mcp.tool()
def update_slide(ctx: Context, slide_id: str, text: str = None, duration: int = None,
                 background_url: str = None, character_url: str = None,
                 character_position: str = None) -> str:
    """Edit a slide's fields. Changes stay local until save_project.

    Parameters:
    - slide_id: The ID of the slide to edit
    - text, duration, background_url, character_url, character_position: new values (optional)
    """
    fields = {
        "text": text,
        "duration": duration,
        "background_url": background_url,
        "character_url": character_url,
        "character_position": character_position,
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    if not _session_state.slides.get(slide_id):
        return f"Error: Slide '{slide_id}' not found."

    _session_state.checkpoint(f"Edit slide {slide_id}")
    try:
        slide = _session_state.slides.patch(slide_id, **fields)
    except (ValidationError, ValueError) as e:
        _session_state.rollback()
        return f"Error: {e}"
    return json.dumps({"status": "updated", "slide": slide.to_wire()}, indent=2)


@mcp.tool()
def duplicate_slide(ctx: Context, slide_id: str) -> str:
    """Copy a slide (without its buttons) right after itself, to start a new branch.

    Parameters:
    - slide_id: The slide to copy
    """
    if not _session_state.slides.get(slide_id):
        return f"Error: Slide '{slide_id}' not found."
    _session_state.checkpoint(f"Duplicate slide {slide_id}")
    copy = _session_state.slides.duplicate(slide_id)
    return json.dumps({"status": "duplicated", "save": _persist(), "slide": copy.to_wire()}, indent=2)


@mcp.tool()
def remove_slide(ctx: Context, slide_id: str) -> str:
    """Remove a slide and save the list.

    Parameters:
    - slide_id: The ID of the slide to remove
    """
    _session_state.checkpoint(f"Remove slide {slide_id}")
    if not _session_state.slides.remove(slide_id):
        _session_state.rollback()
        return f"Error: Slide '{slide_id}' not found."
    note = _persist()
    dangling = _session_state.slides.dangling_references()
    return json.dumps({
        "status": "removed",
        "save": note,
        "remaining": len(_session_state.slides.slides),
        "dangling_jumps": [
            {"slide_id": s, "button_id": b, "target": t} for s, b, t in dangling
        ],
    }, indent=2)


@mcp.tool()
def reorder_slides(ctx: Context, slide_id_list: list[str]) -> str:
    """Reorder slides by providing the complete list of slide IDs in desired order.

    Parameters:
    - slide_id_list: List of all slide IDs in the new order
    """
    _session_state.checkpoint("Reorder slides")
    if _session_state.slides.reorder(slide_id_list):
        return json.dumps({
            "status": "reordered",
            "slides": _session_state.slides.to_summary(),
        }, indent=2)
    _session_state.rollback()
    return "Error: The provided slide ID list doesn't match the current slides."


# ═══════════════════════════════════════════════════════════════════════
# BUTTON TOOLS
# ═══════════════════════════════════════════════════════════════════════

@mcp.tool()
def add_button(ctx: Context, slide_id: str, label: str = "Continue", action: str = "next",
               target_slide_id: str = None, variant: str = "primary",
               response: str = None) -> str:
    """Add a choice button to a slide. Slides with buttons wait for a choice.

    Parameters:
    - slide_id: The slide to add the button to
    - label: Button text
    - action: "next" (following slide) or "jump" (to target_slide_id)
    - target_slide_id: Destination for "jump"
    - variant: primary, secondary or outline
    - response: Optional text shown before the action runs
    """
    if not _session_state.slides.get(slide_id):
        return f"Error: Slide '{slide_id}' not found."
    try:
        button = Button(label=label, action=action, target_slide_id=target_slide_id,
                        variant=variant, response=response)
    except ValidationError as e:
        return f"Error: Invalid button: {e}"

    _session_state.checkpoint(f"Add button to slide {slide_id}")
    _session_state.slides.add_button(slide_id, button)
    return json.dumps({"status": "added", "slide_id": slide_id, "button": button.to_wire()}, indent=2)


@mcp.tool()
def update_button(ctx: Context, slide_id: str, button_id: str, label: str = None,
                  action: str = None, target_slide_id: str = None, variant: str = None,
                  response: str = None) -> str:
    """Edit a button. Pass an empty response to remove it.

    Parameters:
    - slide_id: The slide holding the button
    - button_id: The button to edit
    - label, action, target_slide_id, variant, response: new values (optional)
    """
    fields = {
        "label": label,
        "action": action,
        "target_slide_id": target_slide_id,
        "variant": variant,
        "response": response,
    }
    fields = {k: v for k, v in fields.items() if v is not None}
    _session_state.checkpoint(f"Edit button {button_id}")
    try:
        button = _session_state.slides.update_button(slide_id, button_id, **fields)
    except (StoryReelError, ValidationError, ValueError) as e:
        _session_state.rollback()
        return f"Error: {e}"
    return json.dumps({"status": "updated", "slide_id": slide_id, "button": button.to_wire()}, indent=2)


@mcp.tool()
def remove_button(ctx: Context, slide_id: str, button_id: str) -> str:
    """Remove a button from a slide.

    Parameters:
    - slide_id: The slide holding the button
    - button_id: The button to remove
    """
    _session_state.checkpoint(f"Remove button {button_id}")
    try:
        removed = _session_state.slides.remove_button(slide_id, button_id)
    except StoryReelError as e:
        _session_state.rollback()
        return f"Error: {e}"
    if not removed:
        _session_state.rollback()
        return f"Error: Button '{button_id}' not found on slide '{slide_id}'."
    return f"Button '{button_id}' removed from slide '{slide_id}'."


@mcp.tool()
def undo(ctx: Context) -> str:
    """Undo the last slide or button change."""
    description = _session_state.undo()
    if description:
        return f"Undone: {description}. Slide count: {len(_session_state.slides.slides)}"
    return "Nothing to undo."


# ═══════════════════════════════════════════════════════════════════════
# MEDIA TOOLS
# ═══════════════════════════════════════════════════════════════════════

def _attach(slide_id: Optional[str], field: str, url: str) -> Optional[str]:
    if not slide_id:
        return None
    attr = _media_attr(field)
    if not _session_state.slides.get(slide_id) or not attr:
        return f"not attached (unknown slide '{slide_id}' or field '{field}')"
    _session_state.checkpoint(f"Set {field} for slide {slide_id}")
    _session_state.slides.patch(slide_id, **{attr: url})
    return f"{field} of slide {slide_id}"


@mcp.tool()
def upload_media(ctx: Context, file_path: str, slide_id: str = None,
                 field: str = "background") -> str:
    """Copy a local image or video into the project's uploads and optionally attach it.

    Parameters:
    - file_path: Path to the media file
    - slide_id: Optional slide to attach the media to
    - field: "background" or "character"
    """
    ws = _session_state.workspace
    if not ws:
        return "Error: No project open. Use create_project first."
    path = Path(file_path)
    if not path.is_file():
        return f"Error: File not found: {file_path}"

    try:
        with open(path, "rb") as f:
            asset = ws.store_upload(path.name, f, source="local")
    except (MediaUploadError, OSError) as e:
        return f"Error uploading media: {str(e)}"

    url = ws.public_url(asset)
    return json.dumps({
        "status": "uploaded",
        "asset_id": asset.asset_id,
        "type": asset.type,
        "url": url,
        "attached_to": _attach(slide_id, field, url),
    }, indent=2)


@mcp.tool()
def import_media(ctx: Context, url: str, slide_id: str = None,
                 field: str = "background") -> str:
    """Download remote media into the project's uploads and optionally attach it.

    Parameters:
    - url: URL of the image or video
    - slide_id: Optional slide to attach the media to
    - field: "background" or "character"
    """
    ws = _session_state.workspace
    if not ws:
        return "Error: No project open. Use create_project first."
    try:
        dest = _downloader.download(url, ws.uploads_dir)
    except MediaUploadError as e:
        return f"Error downloading media: {str(e)}"

    try:
        asset = ws.adopt_file(dest, source="download")
    except OSError as e:
        dest.unlink(missing_ok=True)
        return f"Error registering media: {str(e)}"
    public = ws.public_url(asset)
    return json.dumps({
        "status": "downloaded",
        "asset_id": asset.asset_id,
        "type": asset.type,
        "url": public,
        "attached_to": _attach(slide_id, field, public),
    }, indent=2)


@mcp.tool()
def set_slide_media(ctx: Context, slide_id: str, asset_id: str,
                    field: str = "background") -> str:
    """Use a stored asset as a slide's background or character image.

    Parameters:
    - slide_id: The slide to update
    - asset_id: The asset ID returned by upload_media or import_media
    - field: "background" or "character"
    """
    ws = _session_state.workspace
    if not ws:
        return "Error: No project open."
    if not _session_state.slides.get(slide_id):
        return f"Error: Slide '{slide_id}' not found."
    if not _media_attr(field):
        return f"Error: Unknown field '{field}'. Use 'background' or 'character'."
    asset = ws.assets.get(asset_id)
    if not asset:
        return f"Error: Asset '{asset_id}' not found."
    if not ws.get_asset_path(asset_id).is_file():
        return f"Error: File for asset '{asset_id}' is missing from uploads/."

    url = ws.public_url(asset)
    _attach(slide_id, field, url)
    return json.dumps({"status": "updated", "slide_id": slide_id, field: url}, indent=2)


@mcp.tool()
def list_assets(ctx: Context) -> str:
    """List all media stored in the current project."""
    ws = _session_state.workspace
    if not ws:
        return "Error: No project open. Use create_project first."
    if not ws.assets:
        return "No assets registered yet."
    return json.dumps([{
        "asset_id": a.asset_id,
        "filename": a.filename,
        "type": a.type,
        "source": a.source,
        "url": ws.public_url(a),
        "on_disk": ws.get_asset_path(a.asset_id).is_file(),
    } for a in ws.assets.values()], indent=2)


# ═══════════════════════════════════════════════════════════════════════
# PLAYBACK PREVIEW TOOLS
# ═══════════════════════════════════════════════════════════════════════

def _require_playback() -> PlaybackSession:
    global _playback
    if _playback is None:
        _playback = PlaybackSession(_session_state.slides.slides)
    return _playback


@mcp.tool()
async def start_playback(ctx: Context) -> str:
    """Start a preview of the current slides (including unsaved edits) from the first slide."""
    global _playback
    if _playback:
        _playback.close()
    _playback = PlaybackSession(_session_state.slides.slides)
    return json.dumps(_playback.start().to_dict(), indent=2)


@mcp.tool()
async def toggle_playback(ctx: Context) -> str:
    """Pause or resume auto-advance of the preview."""
    return json.dumps(_require_playback().toggle_pause().to_dict(), indent=2)


@mcp.tool()
async def skip_slide(ctx: Context, direction: str = "next") -> str:
    """Move the preview one slide forward or back.

    Parameters:
    - direction: "next" or "prev"
    """
    session = _require_playback()
    if direction == "prev":
        return json.dumps(session.skip_prev().to_dict(), indent=2)
    if direction == "next":
        return json.dumps(session.skip_next().to_dict(), indent=2)
    return f"Error: Unknown direction '{direction}'. Use 'next' or 'prev'."


@mcp.tool()
async def choose_button(ctx: Context, button_id: str) -> str:
    """Press a button on the previewed slide.

    Parameters:
    - button_id: A button of the current slide
    """
    session = _require_playback()
    view = session.view()
    if button_id not in {b.id for b in view.visible_buttons}:
        return f"Error: Button '{button_id}' is not available right now ({view.phase.value})."
    return json.dumps(session.activate_button(button_id).to_dict(), indent=2)


@mcp.tool()
async def get_playback_view(ctx: Context) -> str:
    """Show what the preview viewer currently displays."""
    return json.dumps(_require_playback().view().to_dict(), indent=2)


# ═══════════════════════════════════════════════════════════════════════
# MCP PROMPT
# ═══════════════════════════════════════════════════════════════════════

@mcp.prompt()
def storyreel_workflow() -> str:
    """Recommended workflow for building a branching slideshow"""
    return """You are helping the user build a branching slideshow. Follow this workflow:

1. **Create Project**: Use create_project() (or load_project() for an existing one).

2. **Add Slides**: Use add_slide() for each moment of the story.
   - text is typed out letter by letter
   - duration (ms) is how long a slide without buttons stays up

3. **Media**: Use upload_media() for local files or import_media() for URLs.
   - .mp4/.webm/.ogg/.mov backgrounds play as silent looping video
   - set_slide_media() reuses an asset listed by list_assets()

4. **Branches**: Use add_button() to offer choices.
   - action "jump" with target_slide_id branches; "next" continues
   - a response is shown before the action runs
   - duplicate_slide() copies a slide without buttons to start a branch

5. **Save**: Edits from update_slide() and the button tools stay local until save_project().

6. **Preview**: start_playback(), then get_playback_view(), choose_button(),
   skip_slide() and toggle_playback().

Tips:
- get_project_status() reports jump buttons whose target slide is gone
- Use undo() if you make a mistake
"""


# ── Main ────────────────────────────────────────────────────────────────

def main():
    """Run the MCP server"""
    mcp.run()


if __name__ == "__main__":
    main()
