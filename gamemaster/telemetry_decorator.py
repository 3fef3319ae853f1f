"""Command telemetry decorator."""
from __future__ import annotations

import functools
import time
from typing import Any, Callable

from .telemetry import get_telemetry


def track_command(func: Callable) -> Callable:
    """Decorator to track command usage and performance.

    Wraps ``run_slash(context, interaction)`` and
    ``run_prefix(context, message, args)``; the command name is the module's
    last dotted component.
    """

    command_name = func.__module__.rsplit(".", 1)[-1]
    surface = "prefix" if func.__name__ == "run_prefix" else "slash"

    @functools.wraps(func)
    async def wrapper(context: Any, event: Any, *args, **kwargs) -> Any:
        telemetry = get_telemetry()
        actor = getattr(event, "user", None) if surface == "slash" else getattr(event, "author", None)
        player_id = str(actor.id) if actor is not None else "unknown"
        guild = getattr(event, "guild", None)
        guild_id = str(guild.id) if guild is not None else "dm"
        start_time = time.time()
        success = False

        try:
            result = await func(context, event, *args, **kwargs)
            success = True
            return result

        except Exception as e:
            telemetry.track_error(
                type(e).__name__,
                command=command_name,
                player_id=player_id,
                error_details=str(e)
            )
            raise

        finally:
            duration_ms = (time.time() - start_time) * 1000
            telemetry.track_command(
                command_name,
                player_id,
                guild_id,
                success=success,
                duration_ms=duration_ms,
                surface=surface,
            )

    return wrapper
