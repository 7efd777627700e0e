"""Tool decorator, per-tool parameter contracts and the tool registry."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Mapping, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from ..errors import ToolNotFoundError, ToolParameterError
from .state import ToolFailure, ToolResult, ToolSuccess

logger = logging.getLogger(__name__)


class ToolParams(BaseModel):
    """Base class for tool parameter contracts.

    Fields use snake_case names and carry the wire (camelCase) name as their
    alias. Unknown keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def tool(
    _fn: Callable | None = None,
    *,
    name: str | None = None,
    params: type[BaseModel] | None = None,
    description: str | None = None,
    images: Callable[[Any], list[str]] | None = None,
    summarize: Callable[[Any], Any] | None = None,
) -> Callable:
    """Decorator to mark an async function as a tool.

    Args:
        name: Wire name of the tool (defaults to the function name)
        params: Pydantic model describing the parameters; derived from the
            function signature when omitted
        description: Catalog description (defaults to the docstring summary)
        images: Maps a result to image file paths that should be inlined
            into the next model message
        summarize: Maps a result to the JSON summary sent beside the images
    """

    def wrapper(fn: Callable) -> Callable:
        setattr(fn, "__tool_name__", name or getattr(fn, "__name__", "tool"))
        if params is not None:
            setattr(fn, "__tool_params__", params)
        if description is not None:
            setattr(fn, "__tool_description__", description)
        if images is not None:
            setattr(fn, "__tool_images__", images)
        if summarize is not None:
            setattr(fn, "__tool_summarize__", summarize)
        return fn

    if _fn is None:
        return wrapper

    return wrapper(_fn)


def _params_from_signature(fn: Callable) -> type[BaseModel]:
    """Build a parameter model from a function signature."""
    hints = get_type_hints(fn)
    fields: dict[str, Any] = {}
    for param_name, param in inspect.signature(fn).parameters.items():
        if param_name == "self":
            continue
        annotation = hints.get(param_name, Any)
        default = ... if param.default is inspect.Parameter.empty else param.default
        fields[param_name] = (annotation, default)
    model_name = "".join(part.title() for part in fn.__name__.split("_")) + "Params"
    return create_model(model_name, __base__=ToolParams, **fields)


def _describe(fn: Callable) -> str:
    doc = inspect.getdoc(fn) or ""
    summary = doc.split("\n\n", 1)[0].replace("\n", " ").strip()
    return getattr(fn, "__tool_description__", summary or fn.__name__)


@dataclass(frozen=True)
class ToolSpec:
    """A registry entry: one named tool and its contracts."""

    name: str
    fn: Callable[..., Awaitable[Any]]
    params: type[BaseModel]
    description: str
    images: Callable[[Any], list[str]] | None = None
    summarize: Callable[[Any], Any] | None = None

    @classmethod
    def from_function(cls, fn: Callable) -> ToolSpec:
        return cls(
            name=getattr(fn, "__tool_name__", fn.__name__),
            fn=fn,
            params=getattr(fn, "__tool_params__", None) or _params_from_signature(fn),
            description=_describe(fn),
            images=getattr(fn, "__tool_images__", None),
            summarize=getattr(fn, "__tool_summarize__", None),
        )

    def schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.params.model_json_schema(by_alias=True),
        }


def _parameter_error(name: str, exc: ValidationError) -> ToolParameterError:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    reason = "missing" if first["type"] == "missing" else first["msg"]
    return ToolParameterError(name, field, reason)


class ToolRegistry:
    """Fixed name -> tool mapping used by the agent loop.

    Lookup is by exact name. Parameters are validated against each tool's
    pydantic model before the tool runs.
    """

    def __init__(self, tools: Iterable[Callable] | None = None):
        self._specs: dict[str, ToolSpec] = {}
        for fn in tools or []:
            self.register(fn)

    def register(self, fn: Callable) -> ToolSpec:
        spec = ToolSpec.from_function(fn)
        if spec.name in self._specs:
            raise ValueError(f"Duplicate tool name: {spec.name}")
        self._specs[spec.name] = spec
        logger.debug("Registered tool: %s", spec.name)
        return spec

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def names(self) -> list[str]:
        return list(self._specs)

    def get(self, name: str) -> ToolSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise ToolNotFoundError(name, self.names()) from None

    def validate(self, name: str, params: Any) -> BaseModel:
        """Check ``params`` against the tool's contract.

        Raises:
            ToolNotFoundError: If the tool is not registered
            ToolParameterError: If params are not a mapping or a field is
                missing or invalid
        """
        spec = self.get(name)
        if not isinstance(params, Mapping):
            raise ToolParameterError(name, None, "params must be a JSON object")
        try:
            return spec.params.model_validate(dict(params))
        except ValidationError as exc:
            raise _parameter_error(name, exc) from exc

    async def invoke(self, name: str, params: Any) -> ToolResult:
        """Validate params and run the tool once.

        Returns:
            ToolSuccess with the raw result, or ToolFailure with the error text
        """
        spec = self.get(name)
        try:
            validated = self.validate(name, params)
            kwargs = {
                field: getattr(validated, field)
                for field in type(validated).model_fields
            }
            value = await spec.fn(**kwargs)
        except Exception as e:
            logger.warning("Tool %s failed: %s", name, e)
            return ToolFailure(error=str(e))
        return ToolSuccess(value=value)

    def schemas(self) -> list[dict[str, Any]]:
        return [spec.schema() for spec in self._specs.values()]

    def describe(self) -> str:
        """Render the tools as a markdown catalog for the system prompt."""
        lines = ["## Available tools", ""]
        for spec in self._specs.values():
            parameters = spec.params.model_json_schema(by_alias=True)
            required = set(parameters.get("required", []))
            fields = [
                f"`{key}`{'*' if key in required else ''}"
                for key in parameters.get("properties", {})
            ]
            lines.append(f"- `{spec.name}`: {spec.description}")
            if fields:
                lines.append(f"  params: {', '.join(fields)}")
        lines.extend(["", "(* required)"])
        return "\n".join(lines)
