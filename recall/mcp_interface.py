"""
MCP interface exposing the Recall dashboard as agent tools, using fastmcp.

One process drives one application instance, so at most one identity is
signed in at a time.
"""

from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from .app import RecallApp, create_app
from .models.views import SearchView
from .services.errors import NotFoundError
from .utils.config import config
from .utils.health_check import get_system_info
from .utils.json_utils import to_jsonable
from .utils.logging_config import get_logger

logger = get_logger(__name__)

mcp = FastMCP('Recall')
recall_app = create_app(config)


def describe_view(app: RecallApp, mobile: bool = False) -> Dict[str, Any]:
    """Rendered view plus the chrome around it: user badge, navigation and pending notifications."""
    coordinator = app.coordinator
    view = coordinator.render()
    identity = app.session.identity
    described = {
        'view': to_jsonable(view),
        'active_tab': coordinator.active_tab,
        'sidebar_collapsed': coordinator.sidebar_collapsed,
        'user': {'name': identity.name, 'initials': identity.initials, 'premium': identity.is_premium} if identity else None,
        'navigation': [{'section': section, 'items': to_jsonable(items)} for section, items in coordinator.navigation(mobile)],
        'notifications': [to_jsonable(n) for n in app.context.notifier.drain()],
    }
    if isinstance(view, SearchView):
        described['no_results'] = view.is_empty
    return described


def _view() -> Dict[str, Any]:
    return describe_view(recall_app)


@mcp.tool()
async def sign_in(email: str, password: str) -> Dict[str, Any]:
    """Sign in and load the dashboard.

    Args:
        email: Account email
        password: Account password

    Returns:
        The rendered view plus any notifications raised
    """
    await recall_app.coordinator.submit_login(email, password)
    return _view()


@mcp.tool()
async def sign_up(email: str, password: str, name: str, confirm_password: Optional[str] = None) -> Dict[str, Any]:
    """Create an account (password of at least 6 characters) and load the dashboard."""
    await recall_app.coordinator.submit_signup(email, password, name, confirm_password)
    return _view()


@mcp.tool()
async def sign_out() -> Dict[str, Any]:
    await recall_app.coordinator.sign_out()
    return _view()


@mcp.tool()
async def open_tab(tab: str) -> Dict[str, Any]:
    """Switch the dashboard to a tab (home, search, ai, connectors, analytics, insights, settings)."""
    await recall_app.coordinator.enter_tab(tab)
    return _view()


@mcp.tool()
async def search_memories(query: str, ai: bool = False) -> List[Dict[str, Any]]:
    """Search memories by keyword, or semantically when ``ai`` is true.

    Args:
        query: Search text
        ai: Use AI (semantic) search

    Returns:
        Matching memories
    """
    coordinator = recall_app.coordinator
    coordinator.open_search()
    results = await (coordinator.run_ai_search(query) if ai else coordinator.run_search(query))
    logger.debug(f'MCP search returned {len(results)} memories')
    return to_jsonable(results)


@mcp.tool()
async def view_memory(memory_id: str) -> Optional[Dict[str, Any]]:
    """Select a memory and return it with its media preview, if any."""
    try:
        memory = recall_app.memories.get(memory_id)
    except NotFoundError as e:
        logger.warning(f'MCP view_memory failed: {e}')
        return None
    recall_app.coordinator.select_memory(memory)
    return {'memory': to_jsonable(memory), 'preview': to_jsonable(memory.preview())}


@mcp.tool()
async def bookmark(url: str, kind: str) -> Optional[Dict[str, Any]]:
    """Bookmark a URL as a video, image or article memory."""
    memory = await recall_app.coordinator.bookmark(url, kind)
    return to_jsonable(memory) if memory else None


@mcp.tool()
async def toggle_connector(connector_id: str) -> Dict[str, Any]:
    await recall_app.coordinator.toggle_connector(connector_id)
    await recall_app.coordinator.enter_tab('connectors')
    return _view()


@mcp.tool()
async def ask_assistant(question: str) -> Optional[Dict[str, Any]]:
    """Ask the AI assistant a question about your memories."""
    turn = await recall_app.coordinator.ask(question)
    return to_jsonable(turn) if turn else None


@mcp.tool()
def system_info() -> Dict[str, Any]:
    return get_system_info(config)


if __name__ == '__main__':
    mcp.run(transport=config.mcp.transport, host=config.mcp.host, port=config.mcp.port)
