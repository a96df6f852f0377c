from .app_config import (
    DEFAULT_LAUNCH_TIMEOUT_MS,
    ElectronUIConfig,
    build_launch_env,
    resolve_app_path,
    resolve_config,
    resolve_electron_binary,
)

__all__ = [
    "DEFAULT_LAUNCH_TIMEOUT_MS",
    "ElectronUIConfig",
    "build_launch_env",
    "resolve_app_path",
    "resolve_config",
    "resolve_electron_binary",
]
