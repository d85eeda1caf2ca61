import aiohttp
from typing import Any, Dict, Mapping, Optional, Union
from marshmallow import Schema
from yarl import URL

from volscaler.types.base import BaseModel
from .error import AuthenticationError, NotFoundError

HEADERS = {
    "Accept": "application/json",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
}

"""Default timeout in seconds"""
TIMEOUT: float = 10


class SessionManager(BaseModel):
    """Owns one aiohttp session and wraps its GET requests."""

    def __init__(self, headers: Optional[Mapping] = None, **kwargs: Any) -> None:
        merged_headers = dict(**HEADERS)
        merged_headers.update(headers or {})

        self.timeout = kwargs.pop("timeout", None) or TIMEOUT
        self.session = aiohttp.ClientSession(
            headers=merged_headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        )
        super().__init__(**kwargs)

    async def get(
        self,
        url: Union[str, URL],
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Mapping] = None,
        raise_errors: bool = True,
        schema: Optional[Schema] = None,
        many: bool = False,
    ) -> Any:
        """Run a wrapped session HTTP GET request.

        Args:
            url: The url to get from.
            params: query string parameters
            headers: A dict adding to and overriding the session headers.
            raise_errors: Whether or not raise errors on non-2xx responses.
            schema: An instance of a `marshmallow.Schema` that represents the object
                to build.
            many: Whether to treat the output as a list of the passed schema.
        Returns:
            A JSON dictionary or a constructed object if a schema is passed.
        Raises:
            TypeError: If the schema is a class instead of an instance.
        """
        # Guard against common gotcha, passing schema class instead of instance.
        if isinstance(schema, type):
            raise TypeError("Passed Schema should be an instance not a class.")

        params = {} if params is None else params
        headers = {} if headers is None else headers

        async with self.session.get(str(url), params=params, headers=headers) as res:
            if res.status == 401:
                raise AuthenticationError("Unauthorized")

            if res.status == 403:
                raise AuthenticationError("Forbidden")

            if res.status == 404:
                raise NotFoundError("Not found")

            if raise_errors:
                res.raise_for_status()

            data = await res.json(content_type=None)

        return data if schema is None else schema.load(data, many=many)

    async def close(self) -> None:
        """Shutdown the client"""
        if self.session and not self.session.closed:
            await self.session.close()
