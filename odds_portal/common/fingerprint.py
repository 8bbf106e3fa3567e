"""Session-consistent browser fingerprints.

A :class:`FingerprintProfile` is drawn once per browser session and applied to
every context the session opens: context options (user agent, viewport,
locale, headers) and an init script that aligns the ``navigator`` / ``screen``
/ WebGL surface with the same identity.

Only Chromium family identities are generated because the session always
launches Chromium; a Firefox UA on a Blink engine is trivially detectable.
"""
from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class _BrowserFamily:
    user_agent: str
    sec_ch_ua: str
    sec_ch_ua_platform: str
    platform: str
    app_version: str
    webgl_vendor: str
    webgl_renderers: tuple[str, ...]
    max_touch_points: int = 0


_CHROME_WIN = '"Google Chrome";v="{v}", "Chromium";v="{v}", "Not_A Brand";v="24"'
_EDGE_WIN = '"Microsoft Edge";v="{v}", "Chromium";v="{v}", "Not_A Brand";v="24"'

_WINDOWS_RENDERERS = (
    "ANGLE (NVIDIA, NVIDIA GeForce RTX 3060 Direct3D11 vs_5_0 ps_5_0, D3D11)",
    "ANGLE (NVIDIA, NVIDIA GeForce GTX 1660 SUPER Direct3D11 vs_5_0 ps_5_0, D3D11)",
    "ANGLE (Intel, Intel(R) UHD Graphics 630 Direct3D11 vs_5_0 ps_5_0, D3D11)",
    "ANGLE (AMD, AMD Radeon RX 6600 Direct3D11 vs_5_0 ps_5_0, D3D11)",
)
_MAC_RENDERERS = (
    "ANGLE (Apple, ANGLE Metal Renderer: Apple M1, Unspecified Version)",
    "ANGLE (Apple, ANGLE Metal Renderer: Apple M2, Unspecified Version)",
)
_LINUX_RENDERERS = (
    "ANGLE (Intel, Mesa Intel(R) UHD Graphics 620 (KBL GT2), OpenGL 4.6)",
    "ANGLE (NVIDIA Corporation, NVIDIA GeForce GTX 1070/PCIe/SSE2, OpenGL 4.5.0)",
)


def _chrome(version: str, os_token: str, ch_platform: str, platform: str, vendor: str,
            renderers: tuple[str, ...], brand: str = _CHROME_WIN, suffix: str = "") -> _BrowserFamily:
    ua = (
        f"Mozilla/5.0 ({os_token}) AppleWebKit/537.36 (KHTML, like Gecko) "
        f"Chrome/{version}.0.0.0 Safari/537.36{suffix}"
    )
    return _BrowserFamily(
        user_agent=ua,
        sec_ch_ua=brand.format(v=version),
        sec_ch_ua_platform=f'"{ch_platform}"',
        platform=platform,
        app_version=ua.split("Mozilla/", 1)[1],
        webgl_vendor=vendor,
        webgl_renderers=renderers,
    )


_BROWSER_FAMILIES: tuple[_BrowserFamily, ...] = (
    _chrome("131", "Windows NT 10.0; Win64; x64", "Windows", "Win32", "Google Inc. (NVIDIA)", _WINDOWS_RENDERERS),
    _chrome("130", "Windows NT 10.0; Win64; x64", "Windows", "Win32", "Google Inc. (Intel)", _WINDOWS_RENDERERS),
    _chrome("129", "Windows NT 10.0; Win64; x64", "Windows", "Win32", "Google Inc. (AMD)", _WINDOWS_RENDERERS),
    _chrome("131", "Windows NT 10.0; Win64; x64", "Windows", "Win32", "Google Inc. (NVIDIA)",
            _WINDOWS_RENDERERS, brand=_EDGE_WIN, suffix=" Edg/131.0.0.0"),
    _chrome("131", "Macintosh; Intel Mac OS X 10_15_7", "macOS", "MacIntel", "Google Inc. (Apple)", _MAC_RENDERERS),
    _chrome("130", "Macintosh; Intel Mac OS X 10_15_7", "macOS", "MacIntel", "Google Inc. (Apple)", _MAC_RENDERERS),
    _chrome("131", "X11; Linux x86_64", "Linux", "Linux x86_64", "Google Inc. (Intel)", _LINUX_RENDERERS),
)

_DESKTOP_VIEWPORTS: tuple[tuple[int, int], ...] = (
    (1280, 720),
    (1366, 768),
    (1440, 900),
    (1536, 864),
    (1600, 900),
    (1920, 1080),
)

_LOCALES: tuple[tuple[str, tuple[str, ...], str], ...] = (
    ("en-US", ("en-US", "en"), "America/New_York"),
    ("en-US", ("en-US", "en"), "America/Chicago"),
    ("en-US", ("en-US", "en"), "America/Los_Angeles"),
    ("en-GB", ("en-GB", "en"), "Europe/London"),
)

_EFFECTIVE_TYPES: tuple[tuple[str, float, int], ...] = (
    ("4g", 10.0, 50),
    ("4g", 7.5, 100),
    ("4g", 4.2, 150),
)


@dataclass(frozen=True)
class FingerprintProfile:
    user_agent: str
    viewport: dict[str, int]
    screen: dict[str, int]
    locale: str
    languages: tuple[str, ...]
    timezone_id: str
    color_scheme: str
    device_scale_factor: float
    hardware_concurrency: int
    device_memory: int
    connection: dict[str, Any]
    platform: str
    vendor: str
    app_version: str
    max_touch_points: int
    plugin_count: int
    webgl_vendor: str
    webgl_renderer: str
    sec_ch_ua: str = ""
    sec_ch_ua_platform: str = ""
    extra_headers: dict[str, str] = field(default_factory=dict)

    @property
    def accept_language(self) -> str:
        parts = [self.languages[0]]
        for i, lang in enumerate(self.languages[1:], start=1):
            parts.append(f"{lang};q={max(0.1, 1 - i / 10):.1f}")
        return ",".join(parts)

    def http_headers(self) -> dict[str, str]:
        headers = {"Accept-Language": self.accept_language}
        if self.sec_ch_ua:
            headers["sec-ch-ua"] = self.sec_ch_ua
            headers["sec-ch-ua-mobile"] = "?0"
            headers["sec-ch-ua-platform"] = self.sec_ch_ua_platform
        headers.update(self.extra_headers)
        return headers

    def context_options(self, *, ignore_https_errors: bool = True) -> dict[str, Any]:
        """Keyword arguments for ``Browser.new_context``."""
        return {
            "user_agent": self.user_agent,
            "viewport": dict(self.viewport),
            "screen": dict(self.screen),
            "locale": self.locale,
            "timezone_id": self.timezone_id,
            "color_scheme": self.color_scheme,
            "device_scale_factor": self.device_scale_factor,
            "extra_http_headers": self.http_headers(),
            "ignore_https_errors": ignore_https_errors,
        }

    def init_script(self) -> str:
        """JavaScript installed on every new document of a context."""
        values = json.dumps(
            {
                "languages": list(self.languages),
                "platform": self.platform,
                "vendor": self.vendor,
                "appVersion": self.app_version,
                "hardwareConcurrency": self.hardware_concurrency,
                "deviceMemory": self.device_memory,
                "maxTouchPoints": self.max_touch_points,
                "pluginCount": self.plugin_count,
                "connection": self.connection,
                "screen": self.screen,
                "webglVendor": self.webgl_vendor,
                "webglRenderer": self.webgl_renderer,
            }
        )
        return _INIT_SCRIPT_TEMPLATE.replace("__FINGERPRINT__", values)


_INIT_SCRIPT_TEMPLATE = """
(() => {
  const fp = __FINGERPRINT__;
  const define = (obj, prop, value) => {
    try { Object.defineProperty(obj, prop, { get: () => value, configurable: true }); } catch (e) {}
  };

  define(Navigator.prototype, 'webdriver', false);
  define(Navigator.prototype, 'languages', Object.freeze(fp.languages.slice()));
  define(Navigator.prototype, 'platform', fp.platform);
  define(Navigator.prototype, 'vendor', fp.vendor);
  define(Navigator.prototype, 'appVersion', fp.appVersion);
  define(Navigator.prototype, 'hardwareConcurrency', fp.hardwareConcurrency);
  define(Navigator.prototype, 'deviceMemory', fp.deviceMemory);
  define(Navigator.prototype, 'maxTouchPoints', fp.maxTouchPoints);

  const plugins = Array.from({ length: fp.pluginCount }, (_, i) => ({
    name: `Plugin ${i + 1}`, filename: `plugin${i + 1}.so`, description: '', length: 0,
  }));
  define(Navigator.prototype, 'plugins', plugins);

  define(Navigator.prototype, 'connection', Object.assign(
    { onchange: null, addEventListener() {}, removeEventListener() {} }, fp.connection,
  ));

  if (window.screen) {
    define(window.screen, 'width', fp.screen.width);
    define(window.screen, 'height', fp.screen.height);
    define(window.screen, 'availWidth', fp.screen.width);
    define(window.screen, 'availHeight', fp.screen.height - 40);
  }

  const patchWebGL = (proto) => {
    if (!proto) return;
    const original = proto.getParameter;
    proto.getParameter = function (param) {
      if (param === 37445) return fp.webglVendor;
      if (param === 37446) return fp.webglRenderer;
      return original.call(this, param);
    };
  };
  patchWebGL(window.WebGLRenderingContext && WebGLRenderingContext.prototype);
  patchWebGL(window.WebGL2RenderingContext && WebGL2RenderingContext.prototype);

  if (navigator.permissions && navigator.permissions.query) {
    const originalQuery = navigator.permissions.query.bind(navigator.permissions);
    navigator.permissions.query = (parameters) =>
      parameters && parameters.name === 'notifications'
        ? Promise.resolve({ state: Notification.permission })
        : originalQuery(parameters);
  }
})();
"""


def generate_fingerprint(rng: Optional[random.Random] = None) -> FingerprintProfile:
    """Draw one coherent identity: UA, platform, client hints and WebGL all match."""
    rng = rng or random.Random()
    family = rng.choice(_BROWSER_FAMILIES)
    width, height = rng.choice(_DESKTOP_VIEWPORTS)
    locale, languages, timezone_id = rng.choice(_LOCALES)
    effective_type, downlink, rtt = rng.choice(_EFFECTIVE_TYPES)

    return FingerprintProfile(
        user_agent=family.user_agent,
        viewport={"width": width, "height": height},
        # browser chrome takes some room; screen is never smaller than the viewport
        screen={"width": width, "height": height + rng.choice((40, 72, 80))},
        locale=locale,
        languages=languages,
        timezone_id=timezone_id,
        color_scheme=rng.choice(("light", "light", "dark")),
        device_scale_factor=2.0 if family.platform == "MacIntel" else rng.choice((1.0, 1.0, 1.25)),
        hardware_concurrency=rng.choice((4, 8, 8, 12, 16)),
        device_memory=rng.choice((4, 8, 8, 16)),
        connection={"effectiveType": effective_type, "downlink": downlink, "rtt": rtt, "saveData": False},
        platform=family.platform,
        vendor="Google Inc.",
        app_version=family.app_version,
        max_touch_points=family.max_touch_points,
        plugin_count=rng.choice((3, 5)),
        webgl_vendor=family.webgl_vendor,
        webgl_renderer=rng.choice(family.webgl_renderers),
        sec_ch_ua=family.sec_ch_ua,
        sec_ch_ua_platform=family.sec_ch_ua_platform,
    )


__all__ = ["FingerprintProfile", "generate_fingerprint"]
