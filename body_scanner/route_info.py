"""
Route information for a single handler.

Static (AST-only) access to everything the synthesizer needs to know about a
handler: its function node, declaring class, annotated parameter types, HTTP
method, docstring, and an index of the module-level classes and constants it
can refer to. Nothing in the analysed source is imported or executed.
"""

from __future__ import annotations

import ast
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple, Union

from .deterministic.docstring_parser import DocBlock, DocstringParser
from .deterministic.rule_source import collect_assignments
from .errors import HandlerNotFoundError

logger = logging.getLogger("body_scanner.route_info")

FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

HTTP_METHODS = {"get", "post", "put", "patch", "delete", "head", "options"}
ROUTE_DECORATORS = {"route", "api_route", "add_api_route"}


def annotation_name(annotation: Optional[ast.expr]) -> Optional[str]:
    """
    Dotted type name of an annotation.

    ``StoreUserRequest``, ``requests.StoreUserRequest`` and
    ``"StoreUserRequest"`` are all understood. ``Optional[X]`` and
    ``Annotated[X, ...]`` resolve to ``X``.
    """
    if annotation is None:
        return None
    if isinstance(annotation, ast.Name):
        return annotation.id
    if isinstance(annotation, ast.Attribute):
        prefix = annotation_name(annotation.value)
        return f"{prefix}.{annotation.attr}" if prefix else annotation.attr
    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        return annotation.value.strip() or None
    if isinstance(annotation, ast.Subscript):
        outer = annotation_name(annotation.value)
        if outer and outer.split(".")[-1] in ("Optional", "Annotated"):
            inner = annotation.slice
            if isinstance(inner, ast.Tuple) and inner.elts:
                inner = inner.elts[0]
            return annotation_name(inner)
    return None


def short_name(type_name: str) -> str:
    return type_name.split(".")[-1]


# =============================================================================
# MODULE INDEX
# =============================================================================

class ModuleIndex:
    """
    Classes and module-level constants of one or more parsed modules.

    Later modules never shadow the handler's own module: sources are indexed
    in order and the first definition of a name wins.
    """

    def __init__(self):
        self.classes: Dict[str, Tuple[ast.ClassDef, List[str]]] = {}
        self.constants: Dict[str, Tuple[ast.expr, List[str]]] = {}

    def add_module(self, tree: ast.Module, lines: List[str]) -> None:
        for stmt in tree.body:
            if isinstance(stmt, ast.ClassDef):
                self.classes.setdefault(stmt.name, (stmt, lines))
            elif isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
                self.constants.setdefault(stmt.targets[0].id, (stmt.value, lines))
            elif isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) and stmt.value is not None:
                self.constants.setdefault(stmt.target.id, (stmt.value, lines))

    def find_class(self, name: str) -> Optional[Tuple[ast.ClassDef, List[str]]]:
        return self.classes.get(short_name(name))

    @staticmethod
    def base_names(class_node: ast.ClassDef) -> List[str]:
        names = []
        for base in class_node.bases:
            # Generic[T] / Base[Model]
            if isinstance(base, ast.Subscript):
                base = base.value
            name = annotation_name(base)
            if name:
                names.append(short_name(name))
        return names

    def is_subclass_of(self, name: str, bases: Iterable[str]) -> bool:
        """Strict subclass check resolved through the indexed classes."""
        targets = set(bases)
        visited: Set[str] = set()
        pending = [short_name(name)]

        while pending:
            current = pending.pop()
            if current in visited:
                continue
            visited.add(current)

            entry = self.classes.get(current)
            if entry is None:
                continue

            for base in self.base_names(entry[0]):
                if base in targets:
                    return True
                pending.append(base)

        return False

    def find_method(self, class_name: str, method_name: str) -> Optional[Tuple[FunctionNode, List[str]]]:
        """Look a method up on the class, then on its indexed base classes."""
        visited: Set[str] = set()
        pending = [short_name(class_name)]

        while pending:
            current = pending.pop(0)
            if current in visited:
                continue
            visited.add(current)

            entry = self.classes.get(current)
            if entry is None:
                continue

            class_node, lines = entry
            for stmt in class_node.body:
                if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)) and stmt.name == method_name:
                    return stmt, lines
            pending.extend(self.base_names(class_node))

        return None


# =============================================================================
# ROUTE DECORATORS
# =============================================================================

def route_from_decorators(func: FunctionNode) -> Optional[Tuple[str, str]]:
    """
    Detect ``(METHOD, path)`` from a route decorator.

    Handles ``@app.post("/users")``, ``@router.put(...)`` and
    ``@bp.route("/users", methods=["POST"])``.
    """
    for decorator in func.decorator_list:
        if not isinstance(decorator, ast.Call) or not isinstance(decorator.func, ast.Attribute):
            continue

        attr = decorator.func.attr
        path = ""
        if decorator.args and isinstance(decorator.args[0], ast.Constant) and isinstance(decorator.args[0].value, str):
            path = decorator.args[0].value

        if attr in HTTP_METHODS:
            return attr.upper(), path

        if attr in ROUTE_DECORATORS:
            method = "GET"
            for keyword in decorator.keywords:
                if keyword.arg == "methods" and isinstance(keyword.value, (ast.List, ast.Tuple, ast.Set)):
                    for element in keyword.value.elts:
                        if isinstance(element, ast.Constant) and isinstance(element.value, str):
                            method = element.value.upper()
                            break
            return method, path

    return None


# =============================================================================
# ROUTE INFO
# =============================================================================

class RouteInfo:
    """Everything known statically about one handler."""

    def __init__(
        self,
        function: FunctionNode,
        lines: List[str],
        index: ModuleIndex,
        class_node: Optional[ast.ClassDef] = None,
        http_method: Optional[str] = None,
        path: str = "",
        file_path: str = "<string>",
    ):
        self.function = function
        self.lines = lines
        self.index = index
        self.class_node = class_node
        self.file_path = file_path

        detected = route_from_decorators(function)
        self.http_method = (http_method or (detected[0] if detected else "GET")).upper()
        self.path = path or (detected[1] if detected else "")

        self._doc: Optional[DocBlock] = None

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @staticmethod
    def _build_index(source: str, extra_sources: Sequence[str]) -> Tuple[ast.Module, List[str], ModuleIndex]:
        tree = ast.parse(source)
        lines = source.splitlines()
        index = ModuleIndex()
        index.add_module(tree, lines)

        for extra in extra_sources:
            try:
                index.add_module(ast.parse(extra), extra.splitlines())
            except SyntaxError as e:
                logger.warning(f"Skipping unparsable extra source: {e}")

        return tree, lines, index

    @classmethod
    def from_source(
        cls,
        source: str,
        handler: str,
        http_method: Optional[str] = None,
        path: str = "",
        file_path: str = "<string>",
        extra_sources: Sequence[str] = (),
    ) -> "RouteInfo":
        """
        Build route info for ``handler`` (``"Class.method"`` or ``"function"``).

        Raises ``SyntaxError`` for unparsable source and
        ``HandlerNotFoundError`` when the handler does not exist.
        """
        tree, lines, index = cls._build_index(source, extra_sources)

        class_name, _, func_name = handler.rpartition(".")
        for stmt in tree.body:
            if class_name:
                if isinstance(stmt, ast.ClassDef) and stmt.name == class_name:
                    for member in stmt.body:
                        if isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef)) and member.name == func_name:
                            return cls(member, lines, index, stmt, http_method, path, file_path)
            elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)) and stmt.name == func_name:
                return cls(stmt, lines, index, None, http_method, path, file_path)

        raise HandlerNotFoundError(handler, file_path)

    @classmethod
    def from_file(
        cls,
        file_path: Union[str, Path],
        handler: str,
        http_method: Optional[str] = None,
        path: str = "",
        include_files: Sequence[Union[str, Path]] = (),
    ) -> "RouteInfo":
        source = Path(file_path).read_text(encoding="utf-8")
        extra = [Path(p).read_text(encoding="utf-8") for p in include_files]
        return cls.from_source(source, handler, http_method, path, str(file_path), extra)

    @classmethod
    def discover(
        cls,
        source: str,
        file_path: str = "<string>",
        extra_sources: Sequence[str] = (),
    ) -> Iterator["RouteInfo"]:
        """Yield route info for every decorated route function in ``source``."""
        tree, lines, index = cls._build_index(source, extra_sources)

        for stmt in tree.body:
            candidates: List[Tuple[FunctionNode, Optional[ast.ClassDef]]] = []
            if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
                candidates.append((stmt, None))
            elif isinstance(stmt, ast.ClassDef):
                candidates.extend(
                    (member, stmt) for member in stmt.body
                    if isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef))
                )

            for func, class_node in candidates:
                if route_from_decorators(func) is not None:
                    yield cls(func, lines, index, class_node, file_path=file_path)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def handler_name(self) -> str:
        if self.class_node is not None:
            return f"{self.class_node.name}.{self.function.name}"
        return self.function.name

    def method_node(self) -> FunctionNode:
        return self.function

    def class_name(self) -> Optional[str]:
        return self.class_node.name if self.class_node is not None else None

    def parameters(self) -> List[Tuple[str, Optional[str]]]:
        """Declared parameters as ``(name, annotation type name)`` pairs."""
        args = self.function.args
        params = []
        for arg in args.posonlyargs + args.args + args.kwonlyargs:
            if arg.arg in ("self", "cls"):
                continue
            params.append((arg.arg, annotation_name(arg.annotation)))
        return params

    def doc(self) -> DocBlock:
        if self._doc is None:
            self._doc = DocstringParser.extract_from_node(self.function)
        return self._doc

    def local_assignments(self) -> Dict[str, ast.expr]:
        """Simple ``name = value`` assignments inside the handler body."""
        return collect_assignments(self.function)

    def is_request_type(self, type_name: Optional[str], bases: Iterable[str]) -> bool:
        return bool(type_name) and self.index.is_subclass_of(type_name, bases)

    def request_parameter_types(self, bases: Iterable[str]) -> List[str]:
        """Annotated parameter types that subclass one of ``bases``, in order."""
        bases = set(bases)
        return [
            type_name for _, type_name in self.parameters()
            if self.is_request_type(type_name, bases)
        ]

    def __repr__(self) -> str:
        return f"RouteInfo({self.http_method} {self.path or '-'} -> {self.handler_name})"
