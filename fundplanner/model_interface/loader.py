import importlib
import os

from .content_generator import ContentGenerator


def load_generator() -> ContentGenerator:
    """
    Pick the content generator.

    CONTENT_GENERATOR="package.module:factory" imports and calls the factory;
    unset means the offline stub catalog.
    """
    modpath = os.getenv("CONTENT_GENERATOR")
    if not modpath:
        from fundplanner.model_impl.stub_generator import StubContentGenerator
        return StubContentGenerator()
    mod, factory = modpath.split(":")
    return getattr(importlib.import_module(mod), factory)()
