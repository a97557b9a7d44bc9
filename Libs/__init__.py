# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from .Networking import global_request, GlobalClient
