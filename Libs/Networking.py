# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from __future__ import annotations
import httpx

PROBE_HEADERS = {
    "User-Agent" : "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/126.0 Safari/537.36",
    "Accept"     : "video/*, application/vnd.apple.mpegurl, */*;q=0.5",
}

class GlobalClient:
    """
    Süreç genelinde tek httpx.AsyncClient.

    Sadece kaynak kontrolü için kullanılır (video gövdesi indirilmez), bu yüzden
    bağlantı havuzu küçük ve zaman aşımları kısadır.
    """
    _instance : GlobalClient      | None = None
    _client   : httpx.AsyncClient | None = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("GlobalClient başlatılmadı, lifespan içinde 'start()' çağrılmalı")
        return self._client

    async def start(self):
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            http2            = True,
            headers          = PROBE_HEADERS,
            limits           = httpx.Limits(max_connections=20, max_keepalive_connections=5),
            timeout          = httpx.Timeout(8.0, connect=4.0),
            follow_redirects = True,
        )

    async def stop(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, method: str = "GET", **kwargs) -> httpx.Response:
        return await self.client.request(method, url, **kwargs)

    async def probe(self, url: str) -> httpx.Response:
        """
        Kaynağın başlıklarını al.

        HEAD desteklemeyen CDN'ler için tek byte'lık ranged GET'e düşülür,
        gövde okunmadan bağlantı kapatılır.
        """
        response = await self.fetch(url, method="HEAD")
        if response.status_code not in (405, 501):
            return response

        async with self.client.stream("GET", url, headers={"Range": "bytes=0-0"}) as response:
            return response

global_request = GlobalClient()
