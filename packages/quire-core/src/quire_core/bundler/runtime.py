"""Bundle template and runtime loader for quire.

The generated script holds the module table (``_MODULES``: id -> (name,
code, specifier map)) and the entry list (``_ENTRIES``), followed by the
runtime loader:

- Per-module states: unloaded -> loading -> loaded.
- ``require(id)`` returns the cached module object when the module is
  loaded or still loading (a cycle sees the partially initialized module),
  otherwise executes the module body exactly once.
- Each module sees a module-local ``__require__`` that maps its raw
  specifiers to module ids before delegating to the runtime. A
  ``from . import NAME`` that was linked to the package itself returns
  the package attribute NAME.
- Every entry is required in order when the script runs.

Module code is only ever inserted through the ``pyliteral`` and ``pycode``
filters, which emit valid Python string literals for any input text.
"""

from __future__ import annotations

from jinja2.sandbox import SandboxedEnvironment

BUNDLE_TEMPLATE = """\
#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Generated by quire {{ quire_version }}. Do not edit.
# source-hash: {{ source_hash }}

import linecache as _linecache
import posixpath as _posixpath
import sys as _sys
import types as _types

_MODULES = {
{% for module in modules %}
    {{ module.id | pyliteral }}: (
        {{ module.name | pyliteral }},
        {{ module.code | pycode }},
        {
{% for specifier, target in module.dependencies.items() %}
            {{ specifier | pyliteral }}: {{ target | pyliteral }},
{% endfor %}
        },
    ),
{% endfor %}
}

_ENTRIES = [
{% for entry in entries %}
    {{ entry | pyliteral }},
{% endfor %}
]
{% raw %}
_UNLOADED = "unloaded"
_LOADING = "loading"
_LOADED = "loaded"


class _LocalRequire:
    \"\"\"require() as seen from one bundled module.\"\"\"

    __slots__ = ("_runtime", "_mapping", "_importer")

    def __init__(self, runtime, mapping, importer):
        self._runtime = runtime
        self._mapping = mapping
        self._importer = importer

    def __call__(self, specifier):
        try:
            module_id = self._mapping[specifier]
        except KeyError:
            raise ImportError(
                "%r is not bundled for %s" % (specifier, self._importer)
            ) from None
        module = self._runtime.require(module_id)
        if module_id != self._package_init(specifier):
            return module
        # from . import NAME where NAME is no submodule: a package attribute
        name = specifier.rpartition(".")[2]
        try:
            return getattr(module, name)
        except AttributeError:
            raise ImportError(
                "cannot import name %r from %r (%s)"
                % (name, module.__name__, module.__file__),
                name=module.__name__,
                path=module.__file__,
            ) from None

    def _package_init(self, specifier):
        level = len(specifier) - len(specifier.lstrip("."))
        if not level or level == len(specifier):
            return None
        package = _posixpath.dirname(self._importer)
        for _ in range(level - 1):
            package = _posixpath.dirname(package)
        return _posixpath.join(package, "__init__.py")

    def member(self, specifier, name):
        module = self(specifier)
        try:
            return getattr(module, name)
        except AttributeError:
            raise ImportError(
                "cannot import name %r from %r (%s)"
                % (name, module.__name__, module.__file__),
                name=module.__name__,
                path=module.__file__,
            ) from None

    def chain(self, dotted):
        parts = dotted.split(".")
        top = parent = self(parts[0])
        for index in range(1, len(parts)):
            child = self(".".join(parts[: index + 1]))
            setattr(parent, parts[index], child)
            parent = child
        return top

    def star(self, specifier, namespace):
        module = self(specifier)
        names = getattr(module, "__all__", None)
        if names is None:
            names = [name for name in vars(module) if not name.startswith("_")]
        for name in names:
            namespace[name] = getattr(module, name)


class _Runtime:
    \"\"\"Loads bundled modules on demand, each at most once.\"\"\"

    def __init__(self, modules, entries):
        self._modules = modules
        self._entries = entries
        self._states = {}
        self._exports = {}

    def state(self, module_id):
        return self._states.get(module_id, _UNLOADED)

    def require(self, module_id):
        if self.state(module_id) != _UNLOADED:
            return self._exports[module_id]
        try:
            name, source, mapping = self._modules[module_id]
        except KeyError:
            raise ImportError("no bundled module %r" % (module_id,)) from None

        module = _types.ModuleType(name)
        module.__file__ = module_id
        module.__require__ = _LocalRequire(self, mapping, module_id)
        registered = name != "__main__" and name not in _sys.modules
        if registered:
            _sys.modules[name] = module
        _linecache.cache[module_id] = (
            len(source), None, source.splitlines(True), module_id
        )

        self._exports[module_id] = module
        self._states[module_id] = _LOADING
        try:
            code = compile(source, module_id, "exec", dont_inherit=True)
            exec(code, module.__dict__)
        except BaseException:
            self._states[module_id] = _UNLOADED
            del self._exports[module_id]
            if registered:
                _sys.modules.pop(name, None)
            raise
        self._states[module_id] = _LOADED
        return module

    def run(self):
        for module_id in self._entries:
            self.require(module_id)


_Runtime(_MODULES, _ENTRIES).run()
{% endraw %}
"""


def string_literal(value: str) -> str:
    """Render a short string (id, name, specifier) as a Python literal."""
    return repr(value)


def code_literal(text: str) -> str:
    """Render module code as a triple-quoted Python string literal.

    Newlines and tabs stay literal so the code remains readable inside the
    bundle. Backslashes, double quotes and every non-printable character
    are escaped, so no input can terminate the literal early.

    Args:
        text: Arbitrary text.

    Returns:
        Literal that evaluates back to ``text``.
    """
    parts: list[str] = []
    for char in text:
        if char == "\\":
            parts.append("\\\\")
        elif char == '"':
            parts.append("\\x22")
        elif char in "\n\t" or char.isprintable():
            parts.append(char)
        else:
            codepoint = ord(char)
            if codepoint < 0x100:
                parts.append(f"\\x{codepoint:02x}")
            elif codepoint < 0x10000:
                parts.append(f"\\u{codepoint:04x}")
            else:
                parts.append(f"\\U{codepoint:08x}")
    return '"""' + "".join(parts) + '"""'


def create_environment() -> SandboxedEnvironment:
    """Create the Jinja2 environment used to render bundles."""
    env = SandboxedEnvironment(
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        autoescape=False,
    )
    env.filters["pyliteral"] = string_literal
    env.filters["pycode"] = code_literal
    return env
