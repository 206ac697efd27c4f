"""
Main entry point for the QuillQuiver client core.

Connects a workspace to the configured Supabase project, resolves the stored
session and reports what the application shell would show.
"""

import asyncio
import logging

from quillquiver.config import get_config
from quillquiver.services import Workspace
from quillquiver.services.supabase_facade import SupabaseFacade
from quillquiver.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)


async def run() -> None:
    config = get_config()
    workspace = Workspace(SupabaseFacade(config=config), config)

    result = await workspace.start()
    if not result.success:
        logger.error(f"Could not resolve session: {result.error_message}")
        await workspace.close()
        return

    await workspace.wait_idle()
    snapshot = workspace.snapshot()
    user = snapshot["session"]["user"]
    if user is None:
        logger.info(f"Signed out; showing {snapshot['auth_flow']['mode'].value} form")
    else:
        notes = snapshot["notes"]["collection"]
        logger.info(f"Signed in as {user.email}: {len(notes)} {'note' if len(notes) == 1 else 'notes'}")
        for note in notes[:10]:
            logger.info(f"  {note.updated_at:%Y-%m-%d %H:%M}  {note.title or 'Untitled'}")

    await workspace.close()


if __name__ == "__main__":
    configure_logging()
    asyncio.run(run())
