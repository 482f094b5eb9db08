import os as _os
import pathlib as _pl
import typing as _tp

import pydantic as _pyd

import resultes_rpcclient.jsonrpc.async_client as _rjac
import resultes_rpcclient.jsonrpc.client as _rjc
import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.jsonrpc.ids as _ids
import resultes_rpcclient.transports.adapters as _rta
import resultes_rpcclient.transports.async_http as _rtah
import resultes_rpcclient.transports.http as _rth
import resultes_rpcclient.transports.proxy as _rtp
import resultes_rpcclient.transports.stream as _rts
import resultes_rpcclient.transports.types as _rtt

type Credentials = tuple[str | None, str | None]


class NoAuth(_pyd.BaseModel):
    kind: _tp.Literal["none"] = "none"

    def credentials(self) -> Credentials:
        return None, None


class UserPassAuth(_pyd.BaseModel):
    kind: _tp.Literal["userpass"] = "userpass"
    user: str
    password: str

    def credentials(self) -> Credentials:
        return self.user, self.password


class CookieFileAuth(_pyd.BaseModel):
    """
    Credentials read from a cookie file whose first line is `user:password`,
    as written by daemons that generate a fresh password on every start.
    """

    kind: _tp.Literal["cookie_file"] = "cookie_file"
    path: _pl.Path

    def credentials(self) -> Credentials:
        try:
            with self.path.open(encoding="utf-8") as cookie_file:
                line = cookie_file.readline().rstrip("\r\n")
        except OSError as os_error:
            raise _errs.InvalidCookieFile(
                f"Could not read cookie file {self.path}: {os_error}"
            ) from os_error

        user, separator, password = line.partition(":")
        if not separator:
            raise _errs.InvalidCookieFile(
                f"Cookie file {self.path} does not contain `user:password`."
            )

        return user, password


Auth = _tp.Annotated[
    NoAuth | UserPassAuth | CookieFileAuth, _pyd.Field(discriminator="kind")
]

Timeout = _pyd.PositiveFloat | None


class HttpTransportConfig(_pyd.BaseModel):
    kind: _tp.Literal["http"] = "http"
    url: str
    auth: Auth = _pyd.Field(default_factory=NoAuth)
    proxy: str | None = None
    timeout: Timeout = _rth.DEFAULT_TIMEOUT_SECONDS


class TcpTransportConfig(_pyd.BaseModel):
    kind: _tp.Literal["tcp"] = "tcp"
    host: str
    port: int = _pyd.Field(gt=0, lt=65536)
    timeout: Timeout = _rth.DEFAULT_TIMEOUT_SECONDS


class UnixTransportConfig(_pyd.BaseModel):
    kind: _tp.Literal["unix"] = "unix"
    path: str
    timeout: Timeout = _rth.DEFAULT_TIMEOUT_SECONDS


class Socks5TransportConfig(_pyd.BaseModel):
    kind: _tp.Literal["socks5"] = "socks5"
    proxy_host: str
    proxy_port: int = _pyd.Field(gt=0, lt=65536)
    proxy_username: str | None = None
    proxy_password: str | None = None
    host: str
    port: int = _pyd.Field(gt=0, lt=65536)
    timeout: Timeout = _rth.DEFAULT_TIMEOUT_SECONDS


TransportConfig = _tp.Annotated[
    HttpTransportConfig
    | TcpTransportConfig
    | UnixTransportConfig
    | Socks5TransportConfig,
    _pyd.Field(discriminator="kind"),
]


class ClientConfig(_pyd.BaseModel):
    transport: TransportConfig
    id_scheme: _ids.IdScheme = "decimal"


def build_transport(config: TransportConfig) -> _rtt.Transport:
    match config:
        case HttpTransportConfig():
            user, password = config.auth.credentials()
            return _rth.HttpTransport(
                config.url,
                user=user,
                password=password,
                timeout=config.timeout,
                proxy=config.proxy,
            )
        case TcpTransportConfig():
            return _rts.TcpTransport(config.host, config.port, timeout=config.timeout)
        case UnixTransportConfig():
            return _rts.UnixSocketTransport(config.path, timeout=config.timeout)
        case Socks5TransportConfig():
            return _rtp.Socks5Transport(
                config.proxy_host,
                config.proxy_port,
                config.host,
                config.port,
                proxy_username=config.proxy_username,
                proxy_password=config.proxy_password,
                timeout=config.timeout,
            )
        case _:
            _tp.assert_never(config)


def build_async_transport(config: TransportConfig) -> _rtt.AsyncTransport:
    match config:
        case HttpTransportConfig(proxy=None):
            user, password = config.auth.credentials()
            return _rtah.AiohttpTransport(
                config.url, user=user, password=password, timeout=config.timeout
            )
        case _:
            return _rta.ExecutorTransport(build_transport(config))


def build_client(config: ClientConfig) -> _rjc.Client:
    transport = build_transport(config.transport)
    return _rjc.Client(transport, _ids.IdGenerator.create(config.id_scheme))


def build_async_client(config: ClientConfig) -> _rjac.AsyncClient:
    transport = build_async_transport(config.transport)
    return _rjac.AsyncClient(transport, _ids.IdGenerator.create(config.id_scheme))


def load_client_config(path: str | _os.PathLike[str]) -> ClientConfig:
    json = _pl.Path(path).read_text(encoding="utf-8")
    return ClientConfig.model_validate_json(json)
