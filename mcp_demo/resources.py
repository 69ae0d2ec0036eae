"""URI-addressed, read-only resources.

Only one template ships: ``greeting://{name}``. Matching and rendering are
delegated to the SDK's ``ResourceTemplate``; a ``{placeholder}`` captures one
or more characters up to the next ``/``, and values are not percent-decoded.
Templates are tried in registration order.
"""

from typing import Any, Callable, List, Optional, Tuple

from mcp.server.fastmcp.resources import ResourceTemplate as TemplateMatcher

from mcp_demo.errors import RegistrationError, UnknownResource


class ResourceTemplate:
    def __init__(
        self,
        name: str,
        uri_template: str,
        resolver: Callable[..., Any],
        *,
        title: str = "",
        description: str = "",
        mime_type: str = "text/plain",
    ) -> None:
        self.name = name
        self.uri_template = uri_template
        self.title = title
        self.description = description
        self.mime_type = mime_type
        self._matcher = TemplateMatcher.from_function(
            resolver,
            uri_template,
            name=name,
            title=title or None,
            description=description,
            mime_type=mime_type,
        )

    def match(self, uri: str) -> Optional[dict]:
        return self._matcher.matches(uri)

    async def read(self, uri: str) -> str:
        params = self.match(uri)
        if params is None:
            raise UnknownResource(uri)
        resource = await self._matcher.create_resource(uri, params)
        return await resource.read()

    def __repr__(self) -> str:
        return f"ResourceTemplate({self.name!r}, {self.uri_template!r})"


class ResourceRegistry:
    def __init__(self) -> None:
        self._templates: List[ResourceTemplate] = []

    def add(self, template: ResourceTemplate) -> ResourceTemplate:
        if any(t.name == template.name for t in self._templates):
            raise RegistrationError(f"Resource already registered: {template.name}")
        self._templates.append(template)
        return template

    def templates(self) -> List[ResourceTemplate]:
        return list(self._templates)

    async def resolve(self, uri: str) -> Tuple[ResourceTemplate, str]:
        for template in self._templates:
            if template.match(uri) is not None:
                return template, await template.read(uri)
        raise UnknownResource(uri)


def greeting(name: str) -> str:
    """Returns a friendly greeting for the given name"""
    return f"Hello, {name}!"


def build_resources() -> ResourceRegistry:
    resources = ResourceRegistry()
    resources.add(
        ResourceTemplate(
            "greeting",
            "greeting://{name}",
            greeting,
            title="Greeting Resource",
            description="Returns a friendly greeting for the given name",
        )
    )
    return resources
