"""Go language parser using tree-sitter.

Extracts the package clause, imports, type declarations (interfaces,
structs, named and alias types) and receiver methods from Go source files.
Type expressions are kept as unresolved :class:`TypeExpr` trees; package
qualifiers are resolved later against the file's imports.
"""

from __future__ import annotations

import re

import tree_sitter_go as tsgo
from tree_sitter import Language, Node, Parser

from golens.core.parsers.base import (
    FieldDecl,
    ImportInfo,
    LanguageParser,
    MethodDecl,
    ParamDecl,
    ParseResult,
    SyntaxIssue,
    TypeDecl,
    TypeExpr,
)

GO_LANGUAGE = Language(tsgo.language())

_MAX_SYNTAX_ISSUES = 10

_WHITESPACE = re.compile(r"\s+")

# Older grammar releases used *_spec names; newer ones use *_elem.
_METHOD_ELEMS: frozenset[str] = frozenset({"method_elem", "method_spec"})
_TYPE_PARAM_DECLS: frozenset[str] = frozenset({"type_parameter_declaration", "parameter_declaration"})

def _text(node: Node) -> str:
    return node.text.decode("utf8")

def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()

def _line(node: Node) -> int:
    return node.start_point[0] + 1

def _named(node: Node) -> list[Node]:
    """Named children without comments."""
    return [c for c in node.named_children if c.type != "comment"]

class GoParser(LanguageParser):
    """Parses Go source code using tree-sitter."""

    def __init__(self) -> None:
        self._parser = Parser(GO_LANGUAGE)

    def parse(self, content: str, file_path: str) -> ParseResult:
        """Parse Go source and return structured information."""
        tree = self._parser.parse(bytes(content, "utf8"))
        root = tree.root_node
        result = ParseResult()

        if root.has_error:
            self._collect_syntax_issues(root, result)

        for child in root.named_children:
            match child.type:
                case "package_clause":
                    self._extract_package(child, result)
                case "import_declaration":
                    self._extract_imports(child, result)
                case "type_declaration":
                    self._extract_type_declaration(child, result)
                case "method_declaration":
                    self._extract_method(child, result)
        return result

    # ------------------------------------------------------------------
    # Top-level declarations
    # ------------------------------------------------------------------

    def _collect_syntax_issues(self, root: Node, result: ParseResult) -> None:
        """Record ERROR and MISSING nodes, descending only into erroring subtrees."""
        stack = [root]
        while stack and len(result.errors) < _MAX_SYNTAX_ISSUES:
            node = stack.pop()
            if node.is_missing:
                result.errors.append(SyntaxIssue(_line(node), f"missing {node.type!r}"))
            elif node.type == "ERROR":
                snippet = _collapse(_text(node))[:40]
                result.errors.append(SyntaxIssue(_line(node), f"syntax error near {snippet!r}"))
            elif node.has_error:
                stack.extend(reversed(node.children))
        result.errors.sort(key=lambda issue: issue.line)

    def _extract_package(self, node: Node, result: ParseResult) -> None:
        for child in node.named_children:
            if child.type == "package_identifier":
                result.package = _text(child)
                return

    def _extract_imports(self, node: Node, result: ParseResult) -> None:
        """Extract every import spec of an ``import`` declaration, grouped or not."""
        specs: list[Node] = []
        for child in node.named_children:
            if child.type == "import_spec":
                specs.append(child)
            elif child.type == "import_spec_list":
                specs.extend(c for c in child.named_children if c.type == "import_spec")

        for spec in specs:
            path_node = spec.child_by_field_name("path")
            if path_node is None:
                continue
            name_node = spec.child_by_field_name("name")
            result.imports.append(
                ImportInfo(
                    path=_text(path_node).strip("\"`"),
                    alias=_text(name_node) if name_node is not None else "",
                )
            )

    def _extract_type_declaration(self, node: Node, result: ParseResult) -> None:
        for child in node.named_children:
            if child.type == "type_spec":
                self._extract_type_spec(child, result, alias=False)
            elif child.type == "type_alias":
                self._extract_type_spec(child, result, alias=True)

    def _extract_type_spec(self, node: Node, result: ParseResult, alias: bool) -> None:
        name_node = node.child_by_field_name("name")
        type_node = node.child_by_field_name("type")
        if name_node is None or type_node is None:
            return

        decl = TypeDecl(
            name=_text(name_node),
            line=_line(name_node),
            kind="alias",
            type_params=self._type_param_names(node.child_by_field_name("type_parameters")),
        )

        if alias:
            decl.underlying = self._type_expr(type_node)
            result.types.append(decl)
            return

        type_node = self._unwrap(type_node)
        if type_node.type == "interface_type":
            decl.kind = "interface"
            self._fill_interface(type_node, decl)
        elif type_node.type == "struct_type":
            decl.kind = "struct"
            self._fill_struct(type_node, decl)
        else:
            decl.kind = "named"
            decl.underlying = self._type_expr(type_node)
        result.types.append(decl)

    def _extract_method(self, node: Node, result: ParseResult) -> None:
        """Extract a method declaration together with its receiver shape."""
        name_node = node.child_by_field_name("name")
        receiver = node.child_by_field_name("receiver")
        if name_node is None or receiver is None:
            return

        recv_decls = [c for c in receiver.named_children if c.type == "parameter_declaration"]
        if not recv_decls:
            return
        recv_type = recv_decls[0].child_by_field_name("type")
        if recv_type is None:
            return

        pointer = False
        recv_type = self._unwrap(recv_type)
        if recv_type.type == "pointer_type":
            pointer = True
            inner = _named(recv_type)
            if not inner:
                return
            recv_type = self._unwrap(inner[0])

        type_params: list[str] = []
        if recv_type.type == "generic_type":
            args = recv_type.child_by_field_name("type_arguments")
            if args is not None:
                type_params = [_text(self._unwrap(a)) for a in _named(args)]
            base = recv_type.child_by_field_name("type")
            if base is None:
                return
            recv_type = base

        method = self._method_signature(node, name_node)
        method.receiver = _text(recv_type)
        method.pointer_receiver = pointer
        method.receiver_type_params = type_params
        result.methods.append(method)

    # ------------------------------------------------------------------
    # Type bodies
    # ------------------------------------------------------------------

    def _fill_interface(self, node: Node, decl: TypeDecl) -> None:
        for elem in _named(node):
            if elem.type in _METHOD_ELEMS:
                name_node = elem.child_by_field_name("name")
                if name_node is not None:
                    decl.methods.append(self._method_signature(elem, name_node))
            else:
                decl.embedded.append(self._type_expr(elem))

    def _fill_struct(self, node: Node, decl: TypeDecl) -> None:
        for field_list in node.named_children:
            if field_list.type != "field_declaration_list":
                continue
            for field_node in field_list.named_children:
                if field_node.type != "field_declaration":
                    continue
                type_node = field_node.child_by_field_name("type")
                if type_node is None:
                    continue
                names = [_text(n) for n in field_node.children_by_field_name("name")]
                if names:
                    decl.fields.append(
                        FieldDecl(type=self._type_expr(type_node), line=_line(field_node), names=names)
                    )
                    continue

                pointer = any(c.type == "*" for c in field_node.children)
                type_node = self._unwrap(type_node)
                if type_node.type == "pointer_type":
                    pointer = True
                    type_node = _named(type_node)[0]
                decl.fields.append(
                    FieldDecl(
                        type=self._type_expr(type_node),
                        line=_line(field_node),
                        embedded=True,
                        pointer=pointer,
                    )
                )

    def _type_param_names(self, node: Node | None) -> list[str]:
        if node is None:
            return []
        names: list[str] = []
        for decl in node.named_children:
            if decl.type in _TYPE_PARAM_DECLS:
                names.extend(_text(n) for n in decl.children_by_field_name("name"))
        return names

    # ------------------------------------------------------------------
    # Signatures and type expressions
    # ------------------------------------------------------------------

    def _method_signature(self, node: Node, name_node: Node) -> MethodDecl:
        return MethodDecl(
            name=_text(name_node),
            line=_line(name_node),
            params=self._params(node.child_by_field_name("parameters")),
            results=self._results(node.child_by_field_name("result")),
        )

    def _params(self, node: Node | None) -> list[ParamDecl]:
        if node is None:
            return []
        params: list[ParamDecl] = []
        for decl in node.named_children:
            type_node = decl.child_by_field_name("type")
            if type_node is None:
                continue
            texpr = self._type_expr(type_node)
            if decl.type == "variadic_parameter_declaration":
                texpr = TypeExpr("variadic", elems=(texpr,))
            elif decl.type != "parameter_declaration":
                continue
            names = [_text(n) for n in decl.children_by_field_name("name")]
            if names:
                params.extend(ParamDecl(name=n, type=texpr) for n in names)
            else:
                params.append(ParamDecl(name="", type=texpr))
        return params

    def _results(self, node: Node | None) -> list[TypeExpr]:
        if node is None:
            return []
        if node.type == "parameter_list":
            return [p.type for p in self._params(node)]
        return [self._type_expr(node)]

    def _unwrap(self, node: Node) -> Node:
        """Strip parentheses and single-term type elements."""
        while node.type in ("parenthesized_type", "type_elem", "constraint_elem"):
            inner = _named(node)
            if len(inner) != 1:
                break
            node = inner[0]
        return node

    def _type_expr(self, node: Node) -> TypeExpr:
        node = self._unwrap(node)

        match node.type:
            case "type_identifier" | "identifier":
                return TypeExpr("named", name=_text(node))
            case "qualified_type":
                pkg = node.child_by_field_name("package")
                name = node.child_by_field_name("name")
                if pkg is None or name is None:
                    return TypeExpr("other", name=_collapse(_text(node)))
                return TypeExpr("qualified", name=_text(name), package=_text(pkg))
            case "generic_type":
                base_node = node.child_by_field_name("type")
                args_node = node.child_by_field_name("type_arguments")
                if base_node is None:
                    return TypeExpr("other", name=_collapse(_text(node)))
                base = self._type_expr(base_node)
                args = tuple(self._type_expr(a) for a in _named(args_node)) if args_node is not None else ()
                return TypeExpr(base.kind, name=base.name, package=base.package, elems=args)
            case "pointer_type":
                return TypeExpr("pointer", elems=(self._type_expr(_named(node)[0]),))
            case "slice_type":
                return TypeExpr("slice", elems=(self._field_type(node, "element"),))
            case "array_type":
                length = node.child_by_field_name("length")
                return TypeExpr(
                    "array",
                    name=_collapse(_text(length)) if length is not None else "",
                    elems=(self._field_type(node, "element"),),
                )
            case "implicit_length_array_type":
                return TypeExpr("array", name="...", elems=(self._field_type(node, "element"),))
            case "map_type":
                return TypeExpr(
                    "map",
                    elems=(self._field_type(node, "key"), self._field_type(node, "value")),
                )
            case "channel_type":
                value = node.child_by_field_name("value")
                if value is None:
                    return TypeExpr("other", name=_collapse(_text(node)))
                prefix = node.text[: value.start_byte - node.start_byte].decode("utf8")
                direction = _WHITESPACE.sub("", prefix)
                return TypeExpr("chan", name=direction, elems=(self._type_expr(value),))
            case "function_type":
                params = self._params(node.child_by_field_name("parameters"))
                return TypeExpr(
                    "func",
                    elems=tuple(p.type for p in params),
                    results=tuple(self._results(node.child_by_field_name("result"))),
                )
            case "interface_type":
                return TypeExpr("interface", name=self._literal("interface", _named(node)))
            case "struct_type":
                members: list[Node] = []
                for field_list in node.named_children:
                    if field_list.type == "field_declaration_list":
                        members.extend(_named(field_list))
                return TypeExpr("struct", name=self._literal("struct", members))
            case _:
                return TypeExpr("other", name=_collapse(_text(node)))

    def _field_type(self, node: Node, field_name: str) -> TypeExpr:
        child = node.child_by_field_name(field_name)
        if child is None:
            return TypeExpr("other")
        return self._type_expr(child)

    def _literal(self, keyword: str, members: list[Node]) -> str:
        """Render ``interface{...}`` / ``struct{...}`` with members joined by ``; ``."""
        body = "; ".join(_collapse(_text(m)) for m in members)
        return f"{keyword}{{{body}}}"
