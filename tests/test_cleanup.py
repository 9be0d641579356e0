from types import SimpleNamespace

import pytest

from pyinfuse.config import DEFAULT_CONFIG
from pyinfuse.core import dom
from pyinfuse.runtime.cleanup import CleanupRegistry


def tree():
    soup = dom.parse_html("<div><ul><li>a</li><li>b</li></ul><p>c</p></div>")
    return soup.find("div")


def test_add_flags_elements():
    cleanup = CleanupRegistry()
    div = tree()
    li = div.find("li")

    cleanup.add(li, lambda: None)

    assert li.has_attr("data-sweep")
    assert cleanup.has_queue(li)
    assert not cleanup.has_queue(div)


def test_same_callback_is_queued_once():
    cleanup = CleanupRegistry()
    li = tree().find("li")
    callback = lambda: None  # noqa: E731

    cleanup.add(li, callback)
    cleanup.add(li, callback)
    cleanup.add(li, lambda: None)

    assert cleanup.queue_length(li) == 2


def test_sweep_runs_callbacks_in_order():
    cleanup = CleanupRegistry()
    div = tree()
    calls = []
    first, second = div.find_all("li")

    cleanup.add(first, lambda: calls.append("first"))
    cleanup.add(first, lambda: calls.append("first again"))
    cleanup.add(second, lambda: calls.append("second"))
    cleanup.add(div, lambda: calls.append("root"))

    assert cleanup.sweep(div) == 3
    assert calls == ["first", "first again", "second", "root"]
    assert div.select("[data-sweep]") == []
    assert not div.has_attr("data-sweep")
    assert len(cleanup) == 0


def test_sweep_is_limited_to_the_subtree():
    cleanup = CleanupRegistry()
    div = tree()
    calls = []

    cleanup.add(div.find("li"), lambda: calls.append("li"))
    cleanup.add(div.find("p"), lambda: calls.append("p"))

    assert cleanup.sweep(div.find("ul")) == 1
    assert calls == ["li"]
    assert cleanup.has_queue(div.find("p"))


def test_queues_run_once():
    cleanup = CleanupRegistry()
    li = tree().find("li")
    calls = []
    cleanup.add(li, lambda: calls.append(1))

    assert cleanup.sweep_element(li)
    assert not cleanup.sweep_element(li)
    assert calls == [1]


def test_objects_without_markup():
    cleanup = CleanupRegistry()
    target = SimpleNamespace()
    calls = []

    cleanup.add(target, lambda: calls.append("target"))

    assert cleanup.sweep(target) == 1
    assert calls == ["target"]


def test_custom_flag():
    config = DEFAULT_CONFIG.with_options(sweep_flag="data-gc")
    cleanup = CleanupRegistry(config)
    div = tree()

    cleanup.add(div.find("p"), lambda: None)

    assert div.find("p").has_attr("data-gc")
    assert cleanup.sweep(div) == 1


def test_failing_callback_does_not_stop_the_sweep():
    cleanup = CleanupRegistry()
    li = tree().find("li")
    calls = []

    def fail():
        raise RuntimeError("first")

    cleanup.add(li, fail)
    cleanup.add(li, lambda: calls.append("second"))

    with pytest.raises(RuntimeError, match="first"):
        cleanup.sweep_element(li)

    assert calls == ["second"]
    assert not li.has_attr("data-sweep")
    assert not cleanup.has_queue(li)
