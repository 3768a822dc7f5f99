# -*- coding: utf-8 -*-
"""
CMS Rich-Text Resolver - turns Wagtail rich text into site-ready HTML.
"""
__version__ = "1.0.0"

from .pipeline import ResolutionPipeline  # noqa: E402
from .references import ResolvedField, RichTextDocument  # noqa: E402

__all__ = ["ResolutionPipeline", "ResolvedField", "RichTextDocument", "__version__"]
