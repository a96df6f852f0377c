"""Code evaluation in the renderer and in the main process."""

from ..capability import Capability
from ..decorator import tool
from ..helpers import renderer_evaluation
from ..models import EvaluateParams


def wrap_renderer_code(code: str) -> str:
    return f"(async () => {{\n{code}\n}})()"


@tool(
    description=(
        "Run JavaScript in the active window. The code is an async function body "
        "with access to the DOM; return a JSON-serializable value."
    ),
    params=EvaluateParams,
    capabilities=[Capability.RENDERER_CODE],
)
async def browser_evaluate(session, params: EvaluateParams) -> dict:
    page = await session.get_active_window()
    async with renderer_evaluation():
        result = await page.evaluate(wrap_renderer_code(params.code))
    return {"result": result}


@tool(
    description=(
        "Run JavaScript in the Electron main process. The code is an async function body "
        "with app, BrowserWindow, dialog, shell, clipboard, nativeTheme, screen and session in scope."
    ),
    params=EvaluateParams,
    capabilities=[Capability.MAIN_PROCESS],
)
async def electron_evaluate_main(session, params: EvaluateParams) -> dict:
    app = await session.get_app()
    result = await app.evaluate_main(params.code)
    return {"result": result}
