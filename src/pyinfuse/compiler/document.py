"""Parsing and compiling whole HTML documents."""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from bs4 import BeautifulSoup, Tag

from pyinfuse.compiler.parser import TemplateParser
from pyinfuse.config import DEFAULT_CONFIG, InfuseConfig
from pyinfuse.core import dom
from pyinfuse.core.naming import IdGenerator
from pyinfuse.core.registry import ContextRegistry

logger = logging.getLogger(__name__)

DEFAULT_DOCTYPE = "<!DOCTYPE html>"


@dataclass
class ParsedDocument:
    document: BeautifulSoup
    doctype: str
    # MD5 hex digest of the original markup.
    hash: str


@dataclass
class CompiledDocument:
    document: BeautifulSoup
    doctype: str
    hash: str
    registry: ContextRegistry
    # Top-level templates by template id, in document order.
    templates: Dict[str, Tag] = field(default_factory=dict)

    @property
    def default_template(self) -> Optional[Tag]:
        return next(iter(self.templates.values()), None)

    def serialize(self) -> str:
        return f"{self.doctype}\n{dom.serialize(self.document)}"


def parse_document(html: str) -> ParsedDocument:
    """Parse an HTML document or fragment.

    Markup without ``<html`` or ``<body`` is treated as the content of a single
    template (unless it already starts with one) and wrapped in a body.
    """
    markup = html.strip()

    if markup[:10].upper() == "<!DOCTYPE ":
        end = markup.find(">", 10)
        doctype = markup[: end + 1]
        markup = markup[end + 1 :].strip()
    else:
        doctype = DEFAULT_DOCTYPE

    if "<html" not in markup and "<body" not in markup:
        if markup[:9].lower() != "<template":
            markup = f"<template>{markup}</template>"
        markup = f"<body>{markup}</body>"

    digest = hashlib.md5(html.encode("utf-8")).hexdigest()
    return ParsedDocument(document=dom.parse_html(markup), doctype=doctype, hash=digest)


def compile_document(
    html: str,
    registry: Optional[ContextRegistry] = None,
    config: InfuseConfig = DEFAULT_CONFIG,
) -> CompiledDocument:
    """Parse every template of an HTML document.

    Ids are suffixed with the start of the document hash so that several
    compiled documents can share one registry.
    """
    parsed = parse_document(html)
    registry = registry if registry is not None else ContextRegistry()
    parser = TemplateParser(
        registry,
        config,
        unique_id=IdGenerator.for_hash(parsed.hash, config.hash_length),
    )

    top_level = [
        template
        for template in parsed.document.find_all("template")
        if template.find_parent("template") is None
    ]

    compiled = CompiledDocument(
        document=parsed.document,
        doctype=parsed.doctype,
        hash=parsed.hash,
        registry=registry,
    )
    for template in top_level:
        tid = parser.parse_template(template)
        compiled.templates[tid] = template

    logger.debug(
        "Compiled document %s: %d templates, %d context functions",
        parsed.hash[: config.hash_length],
        len(compiled.templates),
        len(registry),
    )
    return compiled
