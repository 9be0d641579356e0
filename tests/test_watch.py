from types import SimpleNamespace

import pytest

from pyinfuse.compiler.parser import TemplateParser
from pyinfuse.core import dom
from pyinfuse.core.registry import ContextRegistry
from pyinfuse.runtime.cleanup import CleanupRegistry
from pyinfuse.runtime.events import Event, EventDispatcher
from pyinfuse.runtime.exceptions import InfuseRuntimeError
from pyinfuse.runtime.infuse import Infuser
from pyinfuse.runtime.watch import ALL_PARTS, WatchRegistry, iter_event_specs


class Emitter:
    """A non-element event target."""

    def __init__(self, **values):
        self.__dict__.update(values)


def setup(markup):
    registry = ContextRegistry()
    template = dom.parse_html(markup).find("template")
    TemplateParser(registry).parse_template(template)
    return Infuser(registry), template


@pytest.mark.parametrize(
    "spec, expected",
    [
        ("change", [("change", None, ALL_PARTS)]),
        ("click button.add", [("click", "button.add", ALL_PARTS)]),
        (
            "click li > a; input ",
            [("click", "li > a", ALL_PARTS), ("input", None, ALL_PARTS)],
        ),
        ({"change": ".value", "reset": "*"}, [("change", None, ".value"), ("reset", None, "*")]),
        ([("input", [0, 2])], [("input", None, [0, 2])]),
        ("", []),
    ],
)
def test_iter_event_specs(spec, expected):
    assert list(iter_event_specs(spec)) == expected


def test_watching_the_host():
    infuser, template = setup(
        '<template><p watch-host="change">${ host.total }</p></template>'
    )
    host = Emitter(total=1)
    p = infuser.infuse(host, template).find("p")

    host.total = 2
    infuser.dispatch(host, "change")
    assert dom.text_content(p) == "2"

    infuser.dispatch(host, "other")
    host.total = 3
    assert dom.text_content(p) == "2"


def test_watched_parts_only():
    infuser, template = setup(
        "<template><p watch-host=\"{'change': 'class'}\" "
        'class="${ host.kind }">${ host.total }</p></template>'
    )
    host = Emitter(kind="a", total=1)
    p = infuser.infuse(host, template).find("p")

    host.kind, host.total = "b", 2
    infuser.dispatch(host, "change")

    assert p["class"] == "b"
    assert dom.text_content(p) == "1"


def test_watchers_share_one_listener_per_target_and_event():
    infuser, template = setup(
        '<template><p watch-host="change">${ host.a }</p>'
        '<span watch-host="change">${ host.b }</span></template>'
    )
    host = Emitter(a=1, b=2)
    fragment = infuser.infuse(host, template)

    assert infuser.events.listener_count(host, "change") == 1
    entry = infuser.watches.get(host, "change")
    assert len(entry) == 2

    p, span = fragment.find("p"), fragment.find("span")
    infuser.sweep(p)
    assert len(entry) == 1

    host.a, host.b = 10, 20
    infuser.dispatch(host, "change")
    assert dom.text_content(p) == "1"
    assert dom.text_content(span) == "20"


def test_sweeping_the_target_removes_the_listener():
    infuser, template = setup(
        '<template><p watch-host="change">${ host.a }</p></template>'
    )
    host = Emitter(a=1)
    infuser.infuse(host, template)

    infuser.sweep(host)

    assert infuser.events.listener_count(host) == 0
    assert infuser.watches.get(host, "change") is None
    assert len(infuser.watches) == 0


def test_delegated_watch_on_this():
    infuser, template = setup(
        "<template>"
        '<ul watch-this="click li.item" data-count="${ host.count }">'
        '<li class="item">a</li><li class="other">b</li>'
        "</ul></template>"
    )
    host = Emitter(count=0)
    ul = infuser.infuse(host, template).find("ul")
    item, other = ul.find_all("li")

    host.count = 1
    infuser.dispatch(other, "click")
    assert ul["data-count"] == "0"

    infuser.dispatch(item, "click")
    assert ul["data-count"] == "1"


def test_watch_spec_from_an_expression():
    infuser, template = setup(
        '<template><p watch-host="${ host.spec }">${ host.n }</p></template>'
    )
    host = Emitter(spec=[("change; reset", [0])], n=1)
    p = infuser.infuse(host, template).find("p")

    host.n = 2
    infuser.dispatch(host, "reset")
    assert dom.text_content(p) == "2"


def test_watching_a_constant():
    infuser, template = setup(
        '<template><p const-store="${ host.store }" watch-store="update">'
        "${ store.value }</p></template>"
    )
    store = Emitter(value="x")
    p = infuser.infuse(Emitter(store=store), template).find("p")

    store.value = "y"
    infuser.dispatch(store, "update")
    assert dom.text_content(p) == "y"


def test_watching_an_unknown_name():
    infuser, template = setup(
        '<template><p watch-nothing="change">${ host.n }</p></template>'
    )
    with pytest.raises(InfuseRuntimeError):
        infuser.infuse(Emitter(n=1), template)


def test_the_event_is_passed_to_parts():
    infuser, template = setup(
        '<template><p watch-host="change">${ event.detail if event else "-" }</p></template>'
    )
    host = Emitter()
    p = infuser.infuse(host, template).find("p")
    assert dom.text_content(p) == "-"

    infuser.dispatch(host, "change", detail="new")
    assert dom.text_content(p) == "new"


def test_watch_registry_directly():
    events = EventDispatcher()
    cleanup = CleanupRegistry()
    calls = []
    watches = WatchRegistry(
        events, cleanup, lambda watcher, parts, event: calls.append((watcher, parts))
    )
    target = SimpleNamespace()
    watcher = dom.parse_html("<p></p>").find("p")

    assert watches.register(watcher, target, "a; b") == 2
    watches.add_watcher(target, "a", watcher, parts=[0])

    events.dispatch_event(target, Event("a"))
    assert calls == [(watcher, ALL_PARTS), (watcher, [0])]
    assert cleanup.queue_length(watcher) == 2
    assert watcher.has_attr("data-sweep")

    cleanup.sweep(watcher)
    calls.clear()
    events.dispatch_event(target, Event("b"))
    assert calls == []
