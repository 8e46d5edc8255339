import aiohttp
import pytest

from playercipher.cipher.base import ExtractedCipher

PLAYER_URL = "https://www.example.com/s/player/1f2e3d4c/player_ias.vflset/en_US/base.js"

# Minified-looking player script: global table, helper trio, signature entry
# point, and an n function guarded by a typeof short-circuit.
PLAYER_JS = """var _yt_player={};(function(g){
var XY="abc;split;;join;yt_;reverse".split(";");
var cfg={signatureTimestamp:19834,sts:19834};
var Zq={Kv:function(a){a.reverse()},
Xo:function(a,b){var c=a[0];a[0]=a[b%a.length];a[b%a.length]=c},
Pm:function(a,b){a.splice(0,b)}};
Hx=function(a){a=a.split("");Zq.Kv(a,47);Zq.Xo(a,1);Zq.Pm(a,2);return a.join("")};
Tn=function(a){var b=a[XY[1]](XY[2]);if(typeof XY==="undefined")return a;try{b[XY[5]]();b.unshift(XY[4])}catch(d){return XY[4]+a}
return b[XY[3]](XY[2])};
})(_yt_player);
"""

GLOBAL_VARS_LINE = 'var XY="abc;split;;join;yt_;reverse".split(";");'
SIG_ACTIONS_BLOCK = """var Zq={Kv:function(a){a.reverse()},
Xo:function(a,b){var c=a[0];a[0]=a[b%a.length];a[b%a.length]=c},
Pm:function(a,b){a.splice(0,b)}};"""
SIG_FUNCTION_LINE = 'Hx=function(a){a=a.split("");Zq.Kv(a,47);Zq.Xo(a,1);Zq.Pm(a,2);return a.join("")};'
N_FUNCTION_BLOCK = """Tn=function(a){var b=a[XY[1]](XY[2]);if(typeof XY==="undefined")return a;try{b[XY[5]]();b.unshift(XY[4])}catch(d){return XY[4]+a}
return b[XY[3]](XY[2])};"""

# same script as shipped: one line, no fragment boundaries
PLAYER_JS_MINIFIED = PLAYER_JS.replace("\n", "")


class FakeFetcher:
    """In-memory stand-in for Fetcher; records every GET."""

    def __init__(self, scripts: dict[str, str]):
        self.scripts = scripts
        self.calls: list[str] = []
        self.closed = False

    async def get(self, url: str) -> str:
        self.calls.append(url)
        if url not in self.scripts:
            raise aiohttp.ClientConnectionError(f"unreachable: {url}")
        return self.scripts[url]

    async def close(self):
        self.closed = True


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def handmade_cipher() -> ExtractedCipher:
    return ExtractedCipher(
        timestamp="19834",
        global_vars='var a = "abcdefghijklmnopqrstuvwxyz0123456789".split("");',
        sig_actions="""var b = {
            reverse: function(c) { c.reverse(); },
            swap: function(c, d) { var e = c[0]; c[0] = c[d % c.length]; c[d % c.length] = e; },
            splice: function(c, d) { c.splice(0, d); }
        };""",
        sig_function="""var sig = function(c) {
            var d = c.split('');
            b.reverse(d);
            b.swap(d, 1);
            b.splice(d, 2);
            return d.join('');
        }""",
        n_function="""var n = function(c) {
            return 'yt_' + c.split('').reverse().join('');
        }""",
        raw_script="test script",
    )


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher({PLAYER_URL: PLAYER_JS})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
