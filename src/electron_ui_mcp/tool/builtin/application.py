"""Application metadata."""

from ..capability import Capability
from ..decorator import tool
from ..helpers import page_summary
from ..models import EmptyParams

_APP_INFO_JS = """
return {
  name: app.getName(),
  version: app.getVersion(),
  electronVersion: process.versions.electron,
  nodeVersion: process.versions.node,
  chromeVersion: process.versions.chrome,
  isPackaged: app.isPackaged,
  locale: app.getLocale(),
  paths: {
    appPath: app.getAppPath(),
    userData: app.getPath("userData"),
    temp: app.getPath("temp"),
    logs: app.getPath("logs"),
  },
};
"""


@tool(
    description="Name, version, runtime versions and paths of the running Electron app, plus its windows.",
    params=EmptyParams,
    capabilities=[Capability.OBSERVE],
    idempotent=True,
)
async def electron_app_info(session, params: EmptyParams) -> dict:
    app = await session.get_app()
    info = await app.evaluate_main(_APP_INFO_JS)
    windows = await session.list_windows()
    active = await session.get_active_window()
    return {
        "app": info,
        "windows": [window.to_dict() for window in windows],
        "active_window": await page_summary(active),
        "state": session.state.value,
    }
