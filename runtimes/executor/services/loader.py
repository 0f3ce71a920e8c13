"""
Function Loader

Resolves the configured entrypoint to the user callable.

Entrypoints name a file ("main.py", "src/handler.py") or a module ("src.handler"),
optionally followed by ":attribute". Without an attribute the module's default
callable, main(), is used. Two strategies are tried in order: file, then module.
"""

import importlib
import importlib.util
import logging
import os
import re
import sys
from abc import ABC, abstractmethod
from types import ModuleType
from typing import Callable, Dict, List, Optional

from runtimes.executor.core.exceptions import CodeFileNotFoundError, FunctionInvalidError

logger = logging.getLogger("executor.loader")

DEFAULT_HANDLER = "main"


def ensure_on_path(code_path: str) -> None:
    """Let user code import its sibling modules."""
    if code_path not in sys.path:
        sys.path.insert(0, code_path)


class LoaderStrategy(ABC):
    @abstractmethod
    def load(self, reference: str) -> Optional[ModuleType]:
        """
        Load the module named by reference.

        Returns None when this strategy cannot find it.
        """
        pass


class FileLoaderStrategy(LoaderStrategy):
    """Loads a Python source file relative to the user code directory."""

    def __init__(self, code_path: str):
        self.code_path = code_path

    def load(self, reference: str) -> Optional[ModuleType]:
        path = os.path.join(self.code_path, reference)
        if not path.endswith(".py") or not os.path.isfile(path):
            return None

        module_name = "user_function_" + re.sub(r"\W", "_", reference[: -len(".py")])
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            return None

        ensure_on_path(self.code_path)
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module


class ModuleLoaderStrategy(LoaderStrategy):
    """Imports a dotted module name with the user code directory on sys.path."""

    def __init__(self, code_path: str):
        self.code_path = code_path

    def load(self, reference: str) -> Optional[ModuleType]:
        module_name = reference[: -len(".py")] if reference.endswith(".py") else reference
        module_name = module_name.replace("/", ".")
        ensure_on_path(self.code_path)

        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only "not found" for the entrypoint itself; missing dependencies propagate.
            if e.name and (module_name == e.name or module_name.startswith(e.name + ".")):
                return None
            raise


class FunctionLoader:
    def __init__(
        self,
        code_path: str,
        entrypoint: str,
        strategies: Optional[List[LoaderStrategy]] = None,
    ):
        self.code_path = code_path
        self.entrypoint = entrypoint
        self.strategies = strategies or [
            FileLoaderStrategy(code_path),
            ModuleLoaderStrategy(code_path),
        ]
        self._modules: Dict[str, ModuleType] = {}

    def resolve(self) -> Callable:
        """
        Resolve the entrypoint to a callable.

        Raises:
            CodeFileNotFoundError: no strategy found the file or module
            FunctionInvalidError: the entrypoint does not expose a callable
        """
        reference, _, attribute = self.entrypoint.partition(":")
        module = self._load_module(reference)

        target = getattr(module, attribute, None) if attribute else module
        if target is None:
            raise FunctionInvalidError(self.entrypoint)

        if callable(target) and not isinstance(target, ModuleType):
            return target

        default = getattr(target, DEFAULT_HANDLER, None)
        if not callable(default):
            raise FunctionInvalidError(self.entrypoint)
        return default

    def _load_module(self, reference: str) -> ModuleType:
        if reference in self._modules:
            return self._modules[reference]

        for strategy in self.strategies:
            module = strategy.load(reference)
            if module is not None:
                logger.info(
                    "Loaded user code",
                    extra={"entrypoint": reference, "strategy": type(strategy).__name__},
                )
                self._modules[reference] = module
                return module

        raise CodeFileNotFoundError(reference)
