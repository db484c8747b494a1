from typing import AsyncGenerator

import httpx

DEFAULT_CHUNK_SIZE = 64 * 1024


class Stream:
    def __init__(self, response: httpx.Response):
        self.response = response
        self.headers = response.headers
        self.status_code = response.status_code

    @property
    def content_length(self) -> int | None:
        content_length = self.headers.get("Content-Length")
        if content_length and content_length.isdigit():
            return int(content_length)
        return None

    async def iter_bytes(
        self, chunk_size: int | None = None
    ) -> AsyncGenerator[bytes, None]:
        async for chunk in self.response.aiter_bytes(
            chunk_size=chunk_size or DEFAULT_CHUNK_SIZE
        ):
            if len(chunk) > 0:
                yield chunk

    async def read(self, max_bytes: int = 0) -> bytes:
        """Read the body, stopping after `max_bytes` when it is positive."""
        if max_bytes <= 0:
            return await self.response.aread()

        buffer = bytearray()
        async for chunk in self.iter_bytes():
            buffer.extend(chunk[: max_bytes - len(buffer)])
            if len(buffer) >= max_bytes:
                break
        return bytes(buffer)

    async def aclose(self) -> None:
        await self.response.aclose()
