"""
End-to-end tests for ContentParser: tokenized blocks in, resolved blocks out.

Content is fed through JSONBlockTokenizer in the shape parse_blocks() produces,
so these tests cover the tokenizer contract, the resolver and the orchestrator
together.
"""

import json

import pytest

from block_parser import (
    BlockRegistry,
    ContentParser,
    InMemoryMetaStore,
    JSONBlockTokenizer,
    TokenizerError,
)
from block_parser.config import DEBUG_ENV_VAR


REGISTRY_DEFINITIONS = {
    "core/paragraph": {
        "content": {"type": "string", "source": "html", "selector": "p"},
        "dropCap": {"type": "boolean", "default": False},
        "align": {"type": "string"},
    },
    "core/image": {
        "url": {"type": "string", "source": "attribute", "selector": "img", "attribute": "src"},
        "alt": {"type": "string", "source": "attribute", "selector": "img", "attribute": "alt", "default": ""},
        "caption": {"type": "string", "source": "html", "selector": "figcaption"},
        "sizeSlug": {"type": "string"},
    },
    "core/group": {
        "tagName": {"type": "string", "default": "div"},
    },
    "core/quote": {
        "value": {"type": "string", "source": "html", "selector": "blockquote", "multiline": "p", "default": ""},
        "citation": {"type": "string", "source": "html", "selector": "cite", "default": ""},
    },
    "core/separator": {},
    "acme/subtitle": {
        "subtitle": {"type": "string", "source": "meta", "meta": "subtitle"},
    },
}


def block(name, inner_html="", attrs=None, children=None) -> dict:
    return {
        "blockName": name,
        "attrs": attrs if attrs is not None else {},
        "innerBlocks": children or [],
        "innerHTML": inner_html,
    }


def gap() -> dict:
    """The whitespace a tokenizer leaves between two blocks."""
    return block(None, "\n\n")


def content(*blocks) -> str:
    return json.dumps(list(blocks))


@pytest.fixture
def registry():
    return BlockRegistry.from_dict(REGISTRY_DEFINITIONS)


@pytest.fixture
def parser(registry):
    return ContentParser(registry, JSONBlockTokenizer(), debug=False)


def test_registered_unregistered_and_nested_blocks(parser):
    result = parser.parse(content(
        block("core/group", '<div class="wp-block-group"></div>', children=[
            block("core/image", '<figure class="wp-block-image"><img src="/cat.jpg" alt="Cat"/></figure>'),
        ]),
        gap(),
        block("acme/widget", "<div>widget</div>", attrs={"color": "red"}),
        gap(),
    ))

    assert len(result.blocks) == 2
    assert len(result.warnings) == 1
    assert "acme/widget" in result.warnings[0]

    group, widget = result.blocks
    assert group["name"] == "core/group"
    assert group["attributes"] == {"tagName": "div"}
    assert group["children"] == [{
        "name": "core/image",
        "attributes": {"url": "/cat.jpg", "alt": "Cat"},
    }]
    assert widget == {"name": "acme/widget", "attributes": {"color": "red"}}


def test_missing_block_type_warns_once(parser):
    result = parser.parse(content(
        block("acme/widget", "<p>a</p>"),
        block("acme/widget", "<p>b</p>"),
        block("acme/other"),
    ))

    assert result.warnings == [
        'Block type "acme/widget" is not server-side registered. '
        'Sourced block attributes will not be available.',
        'Block type "acme/other" is not server-side registered. '
        'Sourced block attributes will not be available.',
    ]


def test_warnings_do_not_leak_between_calls(parser):
    first = parser.parse(content(block("acme/widget")))
    second = parser.parse(content(block("core/separator", "<hr/>")))

    assert len(first.warnings) == 1
    assert second.warnings == []
    assert "warnings" not in second.to_dict()


def test_sourced_value_overwrites_declared_attribute(parser):
    result = parser.parse(content(
        block("core/paragraph", "<p>From the <em>DOM</em></p>", attrs={"content": "stale"}),
    ))

    assert result.blocks[0]["attributes"]["content"] == "From the <em>DOM</em>"


def test_unsourced_attributes_keep_declared_values_then_defaults(parser):
    result = parser.parse(content(
        block("core/paragraph", "<p>x</p>", attrs={"dropCap": True}),
        block("core/paragraph", "<p>y</p>", attrs={"align": "center"}),
        block("core/image", '<figure><img src="/a.jpg"/></figure>', attrs={"sizeSlug": "large", "id": 5}),
    ))

    first, second, image = (b["attributes"] for b in result.blocks)
    assert first == {"content": "x", "dropCap": True}
    assert second == {"content": "y", "dropCap": False, "align": "center"}
    # Undeclared delimiter attributes pass through; missing alt falls back to its default
    assert image == {"url": "/a.jpg", "alt": "", "sizeSlug": "large", "id": 5}


def test_sourcing_miss_omits_attribute_without_default(parser):
    result = parser.parse(content(block("core/image", "<figure></figure>")))

    assert result.blocks[0]["attributes"] == {"alt": ""}


def test_multiline_quote(parser):
    result = parser.parse(content(
        block("core/quote", "<blockquote class=\"wp-block-quote\"><p>one</p><p>two</p><cite>Me</cite></blockquote>"),
    ))

    assert result.blocks[0]["attributes"] == {"value": "<p>one</p><p>two</p>", "citation": "Me"}


def test_empty_attributes_serialize_as_object(parser):
    result = parser.parse(content(block("core/separator", '<hr class="wp-block-separator"/>')))

    assert result.blocks[0]["attributes"] == {}
    assert '"attributes": {}' in json.dumps(result.to_dict())


def test_untyped_content_is_kept_and_reported_as_empty_type(parser):
    result = parser.parse(content(
        gap(),
        block(None, "<p>Classic content</p>"),
        gap(),
        block(None, "<p>More classic content</p>"),
    ))

    assert result.blocks == [
        {"name": None, "attributes": {}},
        {"name": None, "attributes": {}},
    ]
    assert result.warnings == [
        'Block type "" is not server-side registered. '
        'Sourced block attributes will not be available.',
    ]


def test_nested_whitespace_children_are_dropped(parser):
    result = parser.parse(content(
        block("core/group", "<div></div>", children=[
            gap(),
            block("core/separator", "<hr/>"),
            gap(),
        ]),
        block("core/group", "<div></div>", children=[gap()]),
    ))

    assert result.blocks[0]["children"] == [{"name": "core/separator", "attributes": {}}]
    assert "children" not in result.blocks[1]


def test_meta_sourced_attribute_uses_post_id(registry):
    store = InMemoryMetaStore({42: {"subtitle": "A subtitle"}})
    parser = ContentParser(registry, JSONBlockTokenizer(), meta_store=store, debug=False)

    with_post = parser.parse(content(block("acme/subtitle")), post_id=42)
    without_post = parser.parse(content(block("acme/subtitle")))

    assert with_post.blocks[0]["attributes"] == {"subtitle": "A subtitle"}
    assert without_post.blocks[0]["attributes"] == {}


def test_hook_receives_block_and_can_rewrite_it(registry):
    calls = []

    def hook(sourced_block, block_name, post_id, original):
        calls.append((block_name, post_id, original.inner_markup))
        if block_name == "core/image":
            sourced_block["attributes"]["url"] = "https://cdn.example.com" + sourced_block["attributes"]["url"]
        if block_name == "core/group":
            del sourced_block["attributes"]
        return sourced_block

    parser = ContentParser(registry, JSONBlockTokenizer(), hook=hook, debug=False)
    result = parser.parse(content(
        block("core/group", "<div></div>", children=[
            block("core/image", '<figure><img src="/a.jpg"/></figure>'),
        ]),
    ), post_id=7)

    # Children are resolved, and hooked, before their parent
    assert [(name, post_id) for name, post_id, _ in calls] == [("core/image", 7), ("core/group", 7)]
    assert calls[0][2] == '<figure><img src="/a.jpg"/></figure>'

    group = result.blocks[0]
    assert group["attributes"] == {}
    assert group["children"][0]["attributes"]["url"] == "https://cdn.example.com/a.jpg"


def test_hook_errors_propagate(registry):
    def hook(sourced_block, block_name, post_id, original):
        raise RuntimeError("hook failed")

    parser = ContentParser(registry, JSONBlockTokenizer(), hook=hook, debug=False)

    with pytest.raises(RuntimeError, match="hook failed"):
        parser.parse(content(block("core/separator")))


def test_debug_payloads(registry):
    raw = content(gap(), block("core/paragraph", "<p>x</p>"), gap())
    parser = ContentParser(registry, JSONBlockTokenizer(), debug=True)

    output = parser.parse(raw).to_dict()

    assert output["debug"]["content"] == raw
    assert [node["blockName"] for node in output["debug"]["blocksParsed"]] == ["core/paragraph"]

    definitions = output["blocks"][0]["debug"]["blockDefinitionAttributes"]
    assert definitions["content"] == {"type": "string", "source": "html", "selector": "p"}
    assert definitions["dropCap"] == {"type": "boolean", "default": False}


def test_debug_is_off_without_flag(parser):
    output = parser.parse(content(block("core/paragraph", "<p>x</p>"))).to_dict()

    assert "debug" not in output
    assert "debug" not in output["blocks"][0]


def test_debug_follows_environment_when_not_set(registry, monkeypatch):
    parser = ContentParser(registry, JSONBlockTokenizer())

    monkeypatch.setenv(DEBUG_ENV_VAR, "true")
    assert parser.parse(content(block("core/separator"))).debug is not None

    monkeypatch.setenv(DEBUG_ENV_VAR, "0")
    assert parser.parse(content(block("core/separator"))).debug is None


def test_tokenizer_accepts_php_style_empty_attrs_and_envelope():
    nodes = JSONBlockTokenizer().tokenize(json.dumps({
        "blocks": [{"blockName": "core/separator", "attrs": [], "innerHTML": "<hr/>", "innerBlocks": []}],
    }))

    assert nodes[0].name == "core/separator"
    assert nodes[0].declared_attributes == {}


@pytest.mark.parametrize("raw", ["{not json", '{"blocks": 3}', '[{"blockName": 5}]'])
def test_tokenizer_rejects_invalid_input(raw):
    with pytest.raises(TokenizerError):
        JSONBlockTokenizer().tokenize(raw)
