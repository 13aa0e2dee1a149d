"""
Partial template sources and their aggregation into one mapping.
"""
import asyncio
import inspect
import logging
import os
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from .compiler import TemplateCompiler
from .error.exceptions import ConfigurationError, ErrorContext
from .loader import DirectoryLister

logger = logging.getLogger(__name__)

class DirectorySource(BaseModel):
    """Partials discovered by listing a directory."""
    path: str
    namespace: Optional[str] = None

class InlineSource(BaseModel):
    """Pre-supplied partial templates: a mapping, or a future resolving to one."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    templates: Any
    namespace: Optional[str] = None

PartialSource = Union[DirectorySource, InlineSource]

def coerce_partial_source(entry: Any) -> PartialSource:
    """
    Convert a configured ``partials_dir`` entry to a partial source.

    Accepts a directory path, a source model, or a mapping with ``dir``,
    ``templates`` and ``namespace`` keys.

    Raises:
        ConfigurationError: If the entry names neither a directory nor templates
    """
    if isinstance(entry, (DirectorySource, InlineSource)):
        return entry
    if isinstance(entry, (str, os.PathLike)) and os.fspath(entry):
        return DirectorySource(path=os.fspath(entry))
    if isinstance(entry, Mapping):
        namespace = entry.get("namespace")
        if entry.get("templates") is not None:
            return InlineSource(templates=entry["templates"], namespace=namespace)
        if entry.get("dir"):
            return DirectorySource(path=os.fspath(entry["dir"]), namespace=namespace)

    raise ConfigurationError(
        "A partials dir must be a string or config object",
        ErrorContext("PartialsAggregator", "aggregate"),
        details={"entry": repr(entry)},
    )

def get_template_name(file_path: str, namespace: Optional[str] = None, extname: str = "") -> str:
    """Strip ``extname`` from a relative template path and apply a namespace."""
    name = file_path.replace(os.sep, "/")
    if extname and name.endswith(extname):
        name = name[:-len(extname)]

    if namespace:
        name = f"{namespace}/{name}"
    return name

class PartialsAggregator:
    """Merges partial templates from several sources."""

    def __init__(self, lister: DirectoryLister, compiler: TemplateCompiler, extname: str):
        self.lister = lister
        self.compiler = compiler
        self.extname = extname

    async def get_templates(self, dir_path: str, use_cache: bool = False) -> Dict[str, Callable]:
        """
        Compile every template under a directory.

        Returns:
            Mapping of relative path to compiled template
        """
        file_paths = await self.lister.list(dir_path, use_cache)
        templates = await asyncio.gather(*[
            self.compiler.compile(os.path.join(dir_path, file_path), use_cache)
            for file_path in file_paths
        ])
        return dict(zip(file_paths, templates))

    async def _resolve(self, source: PartialSource, use_cache: bool) -> Mapping[str, Callable]:
        if isinstance(source, InlineSource):
            templates = source.templates
            if inspect.isawaitable(templates):
                templates = await templates
            return templates
        return await self.get_templates(source.path, use_cache)

    async def aggregate(
        self,
        sources: Union[Any, Sequence[Any]],
        use_cache: bool = False,
    ) -> Dict[str, Callable]:
        """
        Build the partials mapping from all sources.

        Sources are resolved concurrently and merged in order; a later source
        overwrites an earlier one on a name collision.

        Args:
            sources: A single source or a list of sources
            use_cache: Whether lookups use the caches

        Raises:
            ConfigurationError: If a source is malformed (before any I/O starts)
        """
        if not isinstance(sources, (list, tuple)):
            sources = [sources]
        resolved: List[PartialSource] = [coerce_partial_source(source) for source in sources]

        results = await asyncio.gather(*[self._resolve(source, use_cache) for source in resolved])

        partials: Dict[str, Callable] = {}
        for source, templates in zip(resolved, results):
            for file_path, template in templates.items():
                partials[get_template_name(file_path, source.namespace, self.extname)] = template

        logger.debug("Aggregated %d partials from %d sources", len(partials), len(resolved))
        return partials
