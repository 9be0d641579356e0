import asyncio
from types import SimpleNamespace

import pytest

from pyinfuse.compiler.parser import TemplateParser
from pyinfuse.core import dom
from pyinfuse.core.registry import ContextRegistry
from pyinfuse.runtime.exceptions import InfuseRuntimeError
from pyinfuse.runtime.infuse import Infuser


def setup(markup):
    registry = ContextRegistry()
    template = dom.parse_html(markup).find("template")
    TemplateParser(registry).parse_template(template)
    return Infuser(registry), template


class AsyncHost:
    def __init__(self, name="Ada", delay=0):
        self.name = name
        self.delay = delay
        self.calls = 0

    async def load(self):
        self.calls += 1
        await asyncio.sleep(self.delay)
        return self.name

    async def fail(self):
        raise ValueError("boom")


@pytest.mark.asyncio
async def test_async_part_is_written_when_it_resolves():
    infuser, template = setup(
        '<template><p class="${ host.name }">${ await host.load() }</p></template>'
    )
    p = infuser.infuse(AsyncHost(), template).find("p")

    # Synchronous parts are written right away.
    assert p["class"] == "Ada"
    assert dom.text_content(p) == "_"
    assert infuser.scheduler.pending == 1

    await infuser.settle()

    assert dom.text_content(p) == "Ada"
    assert infuser.scheduler.pending == 0


@pytest.mark.asyncio
async def test_async_context_function():
    infuser, template = setup(
        '<template><p const-user="${ await host.load() }">${ user.upper() }</p></template>'
    )
    host = AsyncHost()
    p = infuser.infuse(host, template).find("p")

    assert infuser.context_of(p) is None

    await infuser.settle()

    assert dom.text_content(p) == "ADA"
    assert infuser.context_of(p).constants["user"] == "Ada"
    assert host.calls == 1


@pytest.mark.asyncio
async def test_results_for_swept_elements_are_dropped():
    infuser, template = setup("<template><p>${ await host.load() }</p></template>")
    p = infuser.infuse(AsyncHost(delay=0.01), template).find("p")

    infuser.sweep(p)
    await infuser.settle()

    assert dom.text_content(p) == "_"
    assert p not in infuser.arena


@pytest.mark.asyncio
async def test_async_context_of_swept_element_is_dropped():
    infuser, template = setup(
        '<template><button const-user="${ await host.load() }" onclick="pass">'
        "${ user }</button></template>"
    )
    button = infuser.infuse(AsyncHost(delay=0.01), template).find("button")

    infuser.sweep(button)
    await infuser.settle()

    assert infuser.events.listener_count(button) == 0
    assert dom.text_content(button) == "_"


@pytest.mark.asyncio
async def test_errors_surface_from_settle():
    infuser, template = setup("<template><p>${ await host.fail() }</p></template>")
    infuser.infuse(AsyncHost(), template)

    with pytest.raises(ValueError, match="boom"):
        await infuser.settle()

    # Errors are reported once.
    await infuser.settle()


@pytest.mark.asyncio
async def test_async_listener_is_awaited():
    infuser, template = setup(
        '<template><button onclick="host.seen = await host.load()">go</button></template>'
    )
    host = AsyncHost(name="clicked")
    host.seen = None
    button = infuser.infuse(host, template).find("button")

    infuser.dispatch(button, "click")
    await infuser.settle()

    assert host.seen == "clicked"


@pytest.mark.asyncio
async def test_reinfusing_an_async_part():
    infuser, template = setup("<template><p>${ await host.load() }</p></template>")
    host = AsyncHost()
    p = infuser.infuse(host, template).find("p")
    await infuser.settle()

    host.name = "Grace"
    infuser.infuse_element(p, 0)
    await infuser.settle()

    assert dom.text_content(p) == "Grace"
    assert host.calls == 2


def test_async_parts_need_a_running_loop():
    infuser, template = setup("<template><p>${ await host.load() }</p></template>")
    with pytest.raises(InfuseRuntimeError):
        infuser.infuse(AsyncHost(), template)


@pytest.mark.asyncio
async def test_close_cancels_pending_work():
    infuser, template = setup("<template><p>${ await host.load() }</p></template>")
    p = infuser.infuse(AsyncHost(delay=1), template).find("p")

    infuser.close()
    await infuser.settle()
    await asyncio.sleep(0)

    assert infuser.scheduler.pending == 0
    assert len(infuser.arena) == 0
    assert dom.text_content(p) == "_"


def test_failed_async_part_without_loop_is_released():
    infuser, template = setup("<template><p>${ await host.load() }</p></template>")
    with pytest.raises(InfuseRuntimeError):
        infuser.infuse(AsyncHost(), template)

    assert len(infuser.arena) == 0
    assert len(infuser.cleanup) == 0
