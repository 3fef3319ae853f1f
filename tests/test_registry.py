"""Tests for command registration and dispatch."""
from __future__ import annotations

from types import ModuleType
from unittest.mock import AsyncMock

import pytest

from gamemaster.commands import COMMAND_MODULES, CommandRegistry, RegistrationCollision
from gamemaster.commands.base import CommandDescriptor, CommandParameter, OptionKind
from gamemaster.telemetry import MetricType

from conftest import make_interaction, make_message


def fake_module(qualname: str, name: str, *, aliases=(), slash=True) -> ModuleType:
    module = ModuleType(qualname)
    module.NAME = name
    module.ALIASES = tuple(aliases)
    module.register = (lambda: CommandDescriptor(name, f"{name} command")) if slash else (lambda: None)
    module.run_slash = AsyncMock()
    module.run_prefix = AsyncMock()
    return module


def test_builtin_modules_register_without_collision():
    registry = CommandRegistry.from_modules(COMMAND_MODULES)
    names = {descriptor.name for descriptor in registry.descriptors}

    assert {"ping", "prefix", "help", "profile", "work", "open", "saga", "party", "poker"} <= names
    assert "admin" not in names
    assert registry.prefix_module("admin") is not None
    assert registry.prefix_module("p") is registry.prefix_module("profile")
    assert registry.prefix_module("play") is registry.prefix_module("saga")


def test_duplicate_slash_name_is_fatal():
    first = fake_module("mods.open_a", "open")
    second = fake_module("mods.open_b", "open")

    with pytest.raises(RegistrationCollision) as excinfo:
        CommandRegistry.from_modules([first, second])

    assert excinfo.value.name == "open"
    assert excinfo.value.modules == ("mods.open_a", "mods.open_b")


def test_alias_colliding_with_a_name_is_fatal():
    first = fake_module("mods.profile", "profile", aliases=("p",))
    second = fake_module("mods.party", "party", aliases=("p",))

    with pytest.raises(RegistrationCollision):
        CommandRegistry.from_modules([first, second])


def test_alias_collision_ignores_case():
    first = fake_module("mods.open_a", "open")
    second = fake_module("mods.open_b", "unbox", aliases=("Open",))

    with pytest.raises(RegistrationCollision) as excinfo:
        CommandRegistry.from_modules([first, second])

    assert excinfo.value.name == "open"


def test_alias_repeating_own_name_is_fatal():
    module = fake_module("mods.work", "work", aliases=("WORK",), slash=False)

    with pytest.raises(RegistrationCollision):
        CommandRegistry.from_modules([module])


def test_prefix_only_module_collides_on_prefix_name():
    first = fake_module("mods.stats", "stats")
    second = fake_module("mods.stats_admin", "stats", slash=False)

    with pytest.raises(RegistrationCollision):
        CommandRegistry.from_modules([first, second])


def test_module_missing_entry_point_is_rejected():
    broken = ModuleType("mods.broken")
    broken.NAME = "broken"
    broken.register = lambda: None

    with pytest.raises(TypeError):
        CommandRegistry.from_modules([broken])


def test_descriptor_payload_matches_application_command_shape():
    descriptor = CommandDescriptor(
        "profile",
        "Show a profile",
        (CommandParameter("user", "Whose profile", kind=OptionKind.USER),),
    )
    assert descriptor.to_payload() == {
        "name": "profile",
        "description": "Show a profile",
        "type": 1,
        "options": [
            {"name": "user", "description": "Whose profile", "type": 6, "required": False}
        ],
    }


@pytest.mark.asyncio
async def test_dispatch_slash_routes_by_name(context):
    module = fake_module("mods.hello", "hello")
    registry = CommandRegistry.from_modules([module])
    interaction = make_interaction(name="hello")

    assert await registry.dispatch_slash(context, interaction) is True
    module.run_slash.assert_awaited_once_with(context, interaction)


@pytest.mark.asyncio
async def test_dispatch_slash_ignores_unknown_and_prefix_only(context):
    module = fake_module("mods.secret", "secret", slash=False)
    registry = CommandRegistry.from_modules([module])

    assert await registry.dispatch_slash(context, make_interaction(name="secret")) is False
    assert await registry.dispatch_slash(context, make_interaction(name="nope")) is False
    module.run_slash.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_slash_reports_handler_failure(context):
    module = fake_module("mods.hello", "hello")
    module.run_slash = AsyncMock(side_effect=RuntimeError("boom"))
    registry = CommandRegistry.from_modules([module])
    interaction = make_interaction(name="hello")

    assert await registry.dispatch_slash(context, interaction) is True
    interaction.response.send_message.assert_awaited_once()
    assert interaction.response.send_message.await_args.kwargs["ephemeral"] is True


@pytest.mark.asyncio
async def test_dispatch_prefix_parses_name_and_args(context):
    module = fake_module("mods.work", "work", aliases=("w",))
    registry = CommandRegistry.from_modules([module])
    message = make_message("$W fishing now")

    assert await registry.dispatch_prefix(context, message) is True
    module.run_prefix.assert_awaited_once_with(context, message, ["fishing", "now"])


@pytest.mark.asyncio
async def test_dispatch_prefix_ignores_other_messages(context):
    module = fake_module("mods.work", "work")
    registry = CommandRegistry.from_modules([module])

    assert await registry.dispatch_prefix(context, make_message("work fishing")) is False
    assert await registry.dispatch_prefix(context, make_message("$")) is False
    assert await registry.dispatch_prefix(context, make_message("$unknown")) is False
    module.run_prefix.assert_not_awaited()


@pytest.mark.asyncio
async def test_dispatch_prefix_honours_stored_prefix(context):
    module = fake_module("mods.ping", "ping")
    registry = CommandRegistry.from_modules([module])
    context.state.set_setting("command_prefix", "!")

    assert await registry.dispatch_prefix(context, make_message("$ping")) is False
    assert await registry.dispatch_prefix(context, make_message("!ping")) is True


@pytest.mark.asyncio
async def test_builtin_ping_through_registry(context, isolated_telemetry):
    registry = CommandRegistry.from_modules()
    message = make_message("$ping")

    await registry.dispatch_prefix(context, message)

    message.reply.assert_awaited_once()
    assert "42.10 ms" in message.reply.await_args.kwargs["content"]
    totals = isolated_telemetry.summary(MetricType.COMMAND_USAGE)
    assert totals["ping"] == 1
