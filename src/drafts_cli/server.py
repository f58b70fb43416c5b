"""
drafts-mcp - Drafts over the Model Context Protocol.

An MCP server exposing the Drafts scripting bridge (query, read and edit
drafts) and the demo video's frame-state derivation as tools.
"""

from __future__ import annotations

import argparse
import logging
from typing import Any

from dotenv import load_dotenv
from fastmcp import FastMCP

from drafts_cli import __version__, bridge
from drafts_cli.composition import COMPOSITION_ID, HEIGHT, WIDTH, load_timeline, load_timing
from drafts_cli.errors import BridgeError, ConfigError
from drafts_cli.timeline import derive_state

load_dotenv()

# ─────────────────────────────────────────────────────────────────────────────
# Configuration
# ─────────────────────────────────────────────────────────────────────────────

MAX_LIST_RESULTS = 500
DEFAULT_LIST_LIMIT = 50

# ─────────────────────────────────────────────────────────────────────────────
# Server
# ─────────────────────────────────────────────────────────────────────────────

mcp = FastMCP("drafts")

logger = logging.getLogger("drafts_cli")


def _draft_or_error(uuid: str) -> dict[str, Any]:
    draft = bridge.get_draft(uuid)
    if draft is None:
        return {"error": f"Draft '{uuid}' not found"}
    return draft.to_dict()


# ─────────────────────────────────────────────────────────────────────────────
# MCP Tools (exposed to clients)
# ─────────────────────────────────────────────────────────────────────────────


@mcp.tool()
def list_drafts(
    query: str = "",
    filter: str = "inbox",
    tags: list[str] | None = None,
    omit_tags: list[str] | None = None,
    sort: str = "created",
    descending: bool = True,
    flagged_to_top: bool = False,
    limit: int = DEFAULT_LIST_LIMIT,
) -> dict[str, Any]:
    """List drafts matching a text query, folder filter and tags.

    Args:
        query: Case-insensitive text that must appear in the draft content.
        filter: "inbox" (default), "flagged", "archive", "trash" or "all".
        tags: Drafts must have every one of these tags.
        omit_tags: Drafts with any of these tags are skipped.
        sort: "created" (default), "modified" or "accessed".
        descending: Newest first (default True).
        flagged_to_top: Put flagged drafts first.
        limit: Maximum number of drafts to return (default 50, max 500).
    """
    try:
        limit = max(1, min(limit, MAX_LIST_RESULTS))
        drafts = bridge.query_drafts(
            query, bridge.Filter(filter), tags, omit_tags,
            bridge.Sort(sort), descending, flagged_to_top,
        )
        return {
            "count": len(drafts),
            "drafts": [d.to_dict() for d in drafts[:limit]],
        }
    except ConfigError as e:
        return {"error": str(e)}
    except ValueError as e:
        return {"error": f"Invalid argument: {e}"}
    except BridgeError as e:
        logger.error(f"list_drafts failed: {e}")
        return {"error": str(e)}


@mcp.tool()
def get_draft(uuid: str) -> dict[str, Any]:
    """Get a draft by UUID, including content, tags, folder and timestamps.

    Args:
        uuid: The draft's UUID.
    """
    try:
        return _draft_or_error(uuid)
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def create_draft(
    content: str,
    tags: list[str] | None = None,
    archive: bool = False,
    flagged: bool = False,
) -> dict[str, Any]:
    """Create a new draft.

    Args:
        content: Text of the new draft.
        tags: Tags to assign.
        archive: Create the draft in the archive instead of the inbox.
        flagged: Flag the new draft.
    """
    if not content.strip():
        return {"error": "Content cannot be empty."}
    try:
        uuid = bridge.create_draft(content, tags=tags, archive=archive, flagged=flagged)
        logger.info(f"Created draft {uuid}")
        return {"uuid": uuid}
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def append_to_draft(uuid: str, text: str, tags: list[str] | None = None) -> dict[str, Any]:
    """Append a line of text to the end of a draft.

    Args:
        uuid: The draft's UUID.
        text: Text to append (on a new line).
        tags: Tags to add to the draft at the same time.
    """
    try:
        bridge.append(uuid, text, tags=tags)
        return _draft_or_error(uuid)
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def prepend_to_draft(uuid: str, text: str, tags: list[str] | None = None) -> dict[str, Any]:
    """Insert a line of text at the start of a draft.

    Args:
        uuid: The draft's UUID.
        text: Text to prepend (followed by a new line).
        tags: Tags to add to the draft at the same time.
    """
    try:
        bridge.prepend(uuid, text, tags=tags)
        return _draft_or_error(uuid)
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def replace_draft(uuid: str, content: str) -> dict[str, Any]:
    """Replace the whole content of a draft."""
    try:
        bridge.replace(uuid, content)
        return _draft_or_error(uuid)
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def trash_draft(uuid: str) -> dict[str, Any]:
    """Move a draft to the trash."""
    try:
        bridge.trash(uuid)
        return {"uuid": uuid, "folder": bridge.Folder.TRASH.value}
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def archive_draft(uuid: str) -> dict[str, Any]:
    """Move a draft to the archive."""
    try:
        bridge.archive(uuid)
        return {"uuid": uuid, "folder": bridge.Folder.ARCHIVE.value}
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def tag_draft(uuid: str, tags: list[str]) -> dict[str, Any]:
    """Add tags to a draft (existing tags are kept, duplicates skipped)."""
    if not tags:
        return {"error": "At least one tag is required."}
    try:
        bridge.tag(uuid, tags)
        return _draft_or_error(uuid)
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def run_action(action: str, text: str) -> dict[str, Any]:
    """Run a named Drafts action on a new draft holding ``text``.

    Args:
        action: Name of the action, as shown in the Drafts action list.
        text: Content of the draft the action runs on.
    """
    if not action.strip():
        return {"error": "Action name cannot be empty."}
    try:
        uuid = bridge.run_action(action, text)
        logger.info(f"Ran action '{action}' on draft {uuid}")
        return {"uuid": uuid, "action": action}
    except (BridgeError, ConfigError) as e:
        return {"error": str(e)}


@mcp.tool()
def frame_state(frame: int) -> dict[str, Any]:
    """Describe what the demo video shows at an absolute frame number.

    Frames past the end of the video loop back through the scenes.

    Args:
        frame: Absolute frame number (>= 0).
    """
    if frame < 0:
        return {"error": "frame must be >= 0"}
    try:
        state = derive_state(frame, load_timeline(), load_timing())
    except ConfigError as e:
        return {"error": f"Invalid demo configuration: {e}"}
    return {
        "frame": frame,
        "scene_index": state.scene_index,
        "local_frame": state.local_frame,
        "chars_revealed": state.chars_revealed,
        "typed_text": state.typed_text,
        "cursor_active": state.cursor_active,
        "cursor_blink_on": state.cursor_blink_on,
        "output_visible": state.output_visible,
        "output_kind": state.output_kind.value,
        "description": state.description,
    }


# ─────────────────────────────────────────────────────────────────────────────
# MCP Resources (read-only introspection)
# ─────────────────────────────────────────────────────────────────────────────


@mcp.resource("resource://server/info")
def server_info() -> dict[str, Any]:
    """Server version and capabilities."""
    return {
        "name": "drafts",
        "version": __version__,
        "description": "Drafts over MCP - query, read and edit drafts",
        "filters": [f.value for f in bridge.Filter],
        "sorts": [s.value for s in bridge.Sort],
        "features": ["query", "read", "create", "edit", "tag", "run_action", "demo_frame_state"],
    }


@mcp.resource("resource://demo/timeline")
def demo_timeline() -> dict[str, Any]:
    """The demo video composition: size, duration and scenes."""
    try:
        timeline = load_timeline()
        timing = load_timing()
    except ConfigError as e:
        return {"error": str(e)}
    return {
        "id": COMPOSITION_ID,
        "width": WIDTH,
        "height": HEIGHT,
        "fps": timeline.fps,
        "duration_in_frames": timeline.total_frames,
        "frames_per_scene": timeline.frames_per_scene,
        "timing": {
            "typewriter_start": timing.typewriter_start,
            "typewriter_duration": timing.typewriter_duration,
            "output_delay": timing.output_delay,
            "blink_period": timing.blink_period,
        },
        "scenes": [
            {"command": s.command, "output": s.output_kind.value, "description": s.description}
            for s in timeline.scenes
        ],
    }


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main() -> None:
    # Logs go to stderr; stdout carries the MCP transport
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(
        description="drafts-mcp - Drafts MCP server"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args()

    if args.debug:
        logging.getLogger("drafts_cli").setLevel(logging.DEBUG)

    logger.info("Starting drafts MCP server")
    mcp.run()


if __name__ == "__main__":
    main()
