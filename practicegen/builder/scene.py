#!/usr/bin/env python3
"""
Text scene (.tscn) model.

Parses a scene file into resource sections and a tree of nodes that diff
scripts can edit, and writes it back. Property values are kept as raw text:
only the structure of the file is interpreted.

Nodes of editable instanced scenes may name a parent that this file never
declares (`parent="Enemy/Body"`). Such nodes hang under their nearest
declared ancestor and keep the rest of the path in `inner_path`.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from .errors import SceneFormatError

HEADER_PATTERN = re.compile(r'^\[(?P<tag>[A-Za-z_]\w*)(?P<attrs>.*)\]\s*$')
PROPERTY_PATTERN = re.compile(r'^(?P<key>[^\s=\[][^\s=]*) = (?P<value>.*)$')
STRING_PATTERN = re.compile(r'"((?:[^"\\]|\\.)*)"')

# Header keys the node model manages itself
NODE_KEYS = ('name', 'type', 'parent')


def unquote(value: str) -> str:
    """Turn a quoted scene string into plain text"""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1].replace('\\"', '"').replace('\\\\', '\\')
    return value


def quote(text: str) -> str:
    return '"' + text.replace('\\', '\\\\').replace('"', '\\"') + '"'


def parse_string_list(value: str) -> List[str]:
    """Parse `["a", "b"]` into ['a', 'b']"""
    return [unquote(f'"{item}"') for item in STRING_PATTERN.findall(value)]


def format_string_list(items) -> str:
    return '[' + ', '.join(quote(item) for item in items) + ']'


@dataclass
class SceneSection:
    """A bracketed section such as [ext_resource ...] with its properties"""
    tag: str
    attributes: Dict[str, str] = field(default_factory=dict)
    properties: Dict[str, str] = field(default_factory=dict)

    def to_text(self) -> str:
        attrs = ''.join(f' {key}={value}' for key, value in self.attributes.items())
        lines = [f'[{self.tag}{attrs}]']
        lines.extend(f'{key} = {value}' for key, value in self.properties.items())
        return '\n'.join(lines)


@dataclass(eq=False)
class SceneNode:
    """A node of an instantiated scene"""
    name: str
    type: str = ''
    attributes: Dict[str, str] = field(default_factory=dict)
    properties: Dict[str, str] = field(default_factory=dict)
    groups: List[str] = field(default_factory=list)
    children: List['SceneNode'] = field(default_factory=list)
    parent: Optional['SceneNode'] = field(default=None, repr=False)
    inner_path: str = ''            # Undeclared path between parent and node
    attribute_order: List[str] = field(default_factory=list, repr=False)

    def segments(self) -> List[str]:
        """Names from the scene root down to this node"""
        if self.parent is None:
            return []
        names = self.parent.segments()
        if self.inner_path:
            names.extend(self.inner_path.split('/'))
        names.append(self.name)
        return names

    @property
    def path(self) -> str:
        """Path relative to the scene root, '.' for the root itself"""
        return '/'.join(self.segments()) or '.'

    @property
    def parent_path(self) -> Optional[str]:
        """Value of the `parent` header attribute"""
        if self.parent is None:
            return None
        base = self.parent.path
        if not self.inner_path:
            return base
        return self.inner_path if base == '.' else f'{base}/{self.inner_path}'

    @property
    def instanced(self) -> bool:
        """Whether this node comes from, or sits inside, an instanced scene"""
        node = self
        while node is not None:
            if 'instance' in node.attributes or node.inner_path:
                return True
            node = node.parent
        return False

    def add_child(self, child: 'SceneNode') -> 'SceneNode':
        child.parent = self
        self.children.append(child)
        return child

    def remove_child(self, child: 'SceneNode') -> None:
        self.children.remove(child)
        child.parent = None
        child.inner_path = ''

    def remove(self) -> None:
        """Detach this node and its subtree from the scene"""
        if self.parent is None:
            raise SceneFormatError(f"Cannot remove the scene root '{self.name}'")
        self.parent.remove_child(self)

    def get_node(self, path: str) -> Optional['SceneNode']:
        """Find a descendant by a relative path like 'Body/Sprite'"""
        target = self.segments() + [name for name in path.split('/') if name not in ('', '.')]
        for node in self.walk():
            if node.segments() == target:
                return node
        return None

    def find(self, name: str) -> Optional['SceneNode']:
        """First node named `name` in this subtree, depth first"""
        for node in self.walk():
            if node.name == name:
                return node
        return None

    def walk(self) -> Iterator['SceneNode']:
        """This node and all descendants, parents before children"""
        yield self
        for child in list(self.children):
            yield from child.walk()

    def in_group(self, group: str) -> bool:
        return group in self.groups

    def add_to_group(self, group: str) -> None:
        if group not in self.groups:
            self.groups.append(group)

    def remove_from_group(self, group: str) -> None:
        if group in self.groups:
            self.groups.remove(group)

    def to_section(self) -> SceneSection:
        attrs = {'name': quote(self.name)}
        if self.type:
            attrs['type'] = quote(self.type)
        if self.parent is not None:
            attrs['parent'] = quote(self.parent_path)

        # Header order as read, new keys last
        order = [key for key in self.attribute_order if key in self.attributes or key == 'groups']
        order.extend(key for key in self.attributes if key not in order)
        if 'groups' not in order:
            order.append('groups')

        for key in order:
            if key != 'groups':
                attrs[key] = self.attributes[key]
            elif self.groups:
                attrs['groups'] = format_string_list(self.groups)
        return SceneSection(tag='node', attributes=attrs, properties=dict(self.properties))


@dataclass
class PackedScene:
    """A parsed scene file"""
    preamble: List[SceneSection] = field(default_factory=list)
    root: Optional[SceneNode] = None
    trailing: List[SceneSection] = field(default_factory=list)
    declared_paths: Set[str] = field(default_factory=set, repr=False)

    @classmethod
    def parse(cls, text: str, source: str = '<scene>') -> 'PackedScene':
        sections = _parse_sections(text, source)
        scene = cls()
        nodes: Dict[str, SceneNode] = {}

        for section in sections:
            if section.tag != 'node':
                (scene.trailing if nodes else scene.preamble).append(section)
                continue

            node = _node_from_section(section, source)
            parent_path = section.attributes.get('parent')

            if parent_path is None:
                if scene.root is not None:
                    raise SceneFormatError(f"{source}: more than one root node")
                scene.root = node
                nodes['.'] = node
                continue

            if scene.root is None:
                raise SceneFormatError(f"{source}: node '{node.name}' appears before the root")
            parent_path = unquote(parent_path)
            parent, inner_path = _resolve_parent(nodes, parent_path)
            if parent is None:
                raise SceneFormatError(
                    f"{source}: parent '{parent_path}' of node '{node.name}' not found"
                )
            node.inner_path = inner_path
            parent.add_child(node)
            nodes[node.path] = node

        if scene.root is None:
            raise SceneFormatError(f"{source}: scene has no root node")
        scene.declared_paths = set(nodes)
        return scene

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'PackedScene':
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except UnicodeDecodeError as e:
            raise SceneFormatError(f"{path}: not a text scene ({e})") from e
        return cls.parse(text, source=str(path))

    def instantiate(self) -> SceneNode:
        return self.root

    def prune_connections(self) -> None:
        """
        Drop signal connections to nodes that were removed from the tree.

        Endpoints inside instanced scenes are never declared here and are
        kept as long as their declared ancestors still exist.
        """
        current = {node.path for node in self.root.walk()}

        def removed(end: Optional[str]) -> bool:
            if end is None:
                return False
            names = [name for name in unquote(end).split('/') if name not in ('', '.')]
            for cut in range(1, len(names) + 1):
                prefix = '/'.join(names[:cut])
                if prefix in self.declared_paths and prefix not in current:
                    return True
            return False

        self.trailing = [
            section for section in self.trailing
            if section.tag != 'connection'
            or not (removed(section.attributes.get('from')) or removed(section.attributes.get('to')))
        ]

    def to_text(self) -> str:
        if self.root is None:
            raise SceneFormatError("Cannot serialize a scene without a root node")
        sections = list(self.preamble)
        sections.extend(node.to_section() for node in self.root.walk())
        sections.extend(self.trailing)
        return '\n\n'.join(section.to_text() for section in sections) + '\n'

    def save(self, path: Union[str, Path]) -> None:
        text = self.to_text()
        Path(path).write_text(text, encoding='utf-8')


def _parse_sections(text: str, source: str) -> List[SceneSection]:
    sections = []
    current = None
    last_key = None

    for number, line in enumerate(text.splitlines(), 1):
        # Multi-line values such as dictionaries, animation tracks and long
        # strings, whose lines may look like section headers ("[b]bold[/b]")
        if last_key is not None and not _balanced(current.properties[last_key]):
            current.properties[last_key] += '\n' + line
            continue

        header = HEADER_PATTERN.match(line)
        if header:
            current = SceneSection(
                tag=header.group('tag'),
                attributes=_parse_attributes(header.group('attrs'), f"{source}:{number}"),
            )
            sections.append(current)
            last_key = None
            continue

        if current is None:
            if line.strip():
                raise SceneFormatError(f"{source}:{number}: content before the first section")
            continue

        prop = PROPERTY_PATTERN.match(line)
        if prop:
            last_key = prop.group('key')
            current.properties[last_key] = prop.group('value')
        elif line.strip():
            raise SceneFormatError(f"{source}:{number}: unexpected line {line!r}")

    for section in sections:
        for key, value in section.properties.items():
            if not _balanced(value):
                raise SceneFormatError(f"{source}: unterminated value for '{key}' in [{section.tag}]")
            section.properties[key] = value.rstrip('\n')
    return sections


def _parse_attributes(attrs: str, source: str) -> Dict[str, str]:
    """Split header `key=value` pairs; values may contain spaces inside brackets or strings"""
    result = {}
    index = 0
    while index < len(attrs):
        if attrs[index].isspace():
            index += 1
            continue
        equals = attrs.find('=', index)
        if equals < 0:
            raise SceneFormatError(f"{source}: malformed section header attributes {attrs!r}")
        end = _value_end(attrs, equals + 1)
        result[attrs[index:equals]] = attrs[equals + 1:end]
        index = end
    return result


def _value_end(text: str, start: int) -> int:
    """Index of the first whitespace after `start` outside strings and brackets"""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in '([{':
            depth += 1
        elif char in ')]}':
            depth -= 1
        elif char.isspace() and depth <= 0:
            return index
    return len(text)


def _balanced(value: str) -> bool:
    """Whether a raw value has closed all of its brackets"""
    depth = 0
    in_string = False
    escaped = False
    for char in value:
        if in_string:
            if escaped:
                escaped = False
            elif char == '\\':
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in '([{':
            depth += 1
        elif char in ')]}':
            depth -= 1
    return depth <= 0 and not in_string


def _resolve_parent(nodes: Dict[str, SceneNode], parent_path: str) -> Tuple[Optional[SceneNode], str]:
    """
    Find the declared parent for a `parent` attribute.

    Returns:
        (node, inner_path); inner_path is the part of the path that lies in
        an instanced scene. (None, '') when the parent cannot exist.
    """
    if parent_path in nodes:
        return nodes[parent_path], ''

    names = parent_path.split('/')
    for cut in range(len(names) - 1, -1, -1):
        ancestor = nodes.get('/'.join(names[:cut]) or '.')
        if ancestor is None:
            continue
        if ancestor.instanced:
            return ancestor, '/'.join(names[cut:])
        return None, ''
    return None, ''


def _node_from_section(section: SceneSection, source: str) -> SceneNode:
    attrs = dict(section.attributes)
    if 'name' not in attrs:
        raise SceneFormatError(f"{source}: node section without a name")
    order = [key for key in attrs if key not in NODE_KEYS]
    name = unquote(attrs.pop('name'))
    node_type = unquote(attrs.pop('type', '""'))
    attrs.pop('parent', None)
    groups = parse_string_list(attrs.pop('groups', '[]'))
    return SceneNode(
        name=name,
        type=node_type,
        attributes=attrs,
        properties=dict(section.properties),
        groups=groups,
        attribute_order=order,
    )
