import hashlib
from types import SimpleNamespace

from pyinfuse.compiler.document import compile_document, parse_document
from pyinfuse.core import dom
from pyinfuse.core.registry import ContextRegistry
from pyinfuse.runtime.infuse import Infuser


def test_fragment_is_wrapped_in_a_template():
    markup = "<p>${ host.x }</p>"
    parsed = parse_document(markup)

    assert parsed.doctype == "<!DOCTYPE html>"
    assert parsed.hash == hashlib.md5(markup.encode("utf-8")).hexdigest()
    template = parsed.document.find("body").find("template")
    assert template.find("p") is not None


def test_template_markup_is_not_wrapped_twice():
    parsed = parse_document("<template><p>x</p></template>")
    assert len(parsed.document.find_all("template")) == 1


def test_full_documents_keep_their_doctype():
    parsed = parse_document(
        "<!doctype html><html><body><template><p>x</p></template></body></html>"
    )
    assert parsed.doctype == "<!doctype html>"
    assert parsed.document.find("html") is not None


def test_compile_document_uses_hashed_ids():
    markup = "<p>${ host.x }</p>"
    suffix = hashlib.md5(markup.encode("utf-8")).hexdigest()[:7]
    compiled = compile_document(markup)

    template = compiled.default_template
    assert template["data-tid"] == f"template1_{suffix}"
    assert template.find("p")["data-cid"] == f"p2_{suffix}"
    assert list(compiled.templates) == [f"template1_{suffix}"]


def test_top_level_templates_only():
    compiled = compile_document(
        "<body>"
        "<template><p>${ host.a }</p></template>"
        '<template><ul><template for="i" each="${ host.items }"><li>${ i }</li></template></ul></template>'
        "</body>"
    )
    assert len(compiled.templates) == 2
    # The nested template is registered as well.
    assert len(compiled.registry.templates) == 3


def test_documents_can_share_a_registry():
    registry = ContextRegistry()
    first = compile_document("<p>${ host.a }</p>", registry)
    second = compile_document("<p>${ host.b }</p>", registry)

    assert first.default_template["data-tid"] != second.default_template["data-tid"]
    assert len(registry) == 2


def test_serialize():
    compiled = compile_document("<p>${ host.x }</p>")
    output = compiled.serialize()

    assert output.startswith("<!DOCTYPE html>\n")
    assert 'data-cid="p2_' in output
    assert "${" not in output


def test_compiled_document_can_be_infused():
    compiled = compile_document("<p>Hello ${ host.name }</p>")
    infuser = Infuser(compiled.registry)

    fragment = infuser.infuse(SimpleNamespace(name="Ada"), compiled.default_template)

    assert dom.text_content(fragment.find("p")) == "Hello Ada"
