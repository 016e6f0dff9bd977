"""Command-line options of the radiosity compiler."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Sequence

DEFAULT_MAP_LIGHTING = 0x200000
LMSTEP = 16
QBSP_LMSTEP = 4
DEFAULT_SMOOTHING_VALUE = 44.0
DEFAULT_NUDGE_VALUE = 0.25

MIN_SUBDIV = 16
MAX_SUBDIV = 1024

USAGE = """Usage: bsprad [options] mapname
    -ambient #            -basedir [dir]      -bounce #
    -dice                 -direct #           -entity #
    -extra                -help               -maxdata #
    -maxlight #           -noedgefix          -nudge #
    -saturation #         -scale #            -smooth #
    -subdiv               -sunradscale #      -threads #
    -gamedir [dir]        -moddir [dir]       -radmin #
Debugging tools:
    -dump                 -noblock            -nopvs
    -savetrace            -tmpin              -tmpout
    -v (verbose)
"""

HELP = """Radiosity lighting compiler with automatic phong and extended limits.
Usage: bsprad [options] mapname

    -ambient #: Minimum light level, 0 to 255.
    -basedir [directory]: The base directory for textures.
    -gamedir [directory]: Game directory (folder with the game executable).
    -moddir [directory]: Mod directory (base folder).
    -bounce #: Maximum number of light bounces for radiosity.
    -dice: Subdivide patches with a global grid rather than per patch.
    -direct #: Direct light scale factor.
    -entity #: Entity light scale factor.
    -extra: Use extra samples to smooth lighting.
    -maxdata #: 2097152 is the default maximum.
    -maxlight #: Maximum light level, 0 to 255.
    -noedgefix: Disable the dark edges at sky fix.
    -nudge #: Nudge factor for samples, as a distance fraction from the centre.
    -radmin #: Smallest transfer kept between two patches.
    -saturation #: Saturation factor of light bounced off surfaces.
    -scale #: Light intensity multiplier.
    -smooth #: Threshold angle (# and 180deg - #) for phong smoothing.
    -subdiv (or -chop) #: Maximum patch size. Default: 64
    -sunradscale #: Sky light intensity scale when the sun is active.
    -threads #: Number of CPU cores to use.
Debugging tools:
    -dump: Dump patches to a text file.
    -noblock: Brushes don't block the lighting path.
    -nopvs: Don't do the potential visibility set check.
    -savetrace: Keep traces between bounces.
    -tmpin: Read from the 'tmp' directory.
    -tmpout: Write to the 'tmp' directory.
    -v: Verbose output for debugging.
"""

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class UsageError(Exception):
    """Raised when the command line is malformed or help is requested."""

    def __init__(self, text: str, help_requested: bool = False):
        super().__init__(text)
        self.text = text
        self.help_requested = help_requested


def _atoi(text: str) -> int:
    match = _INT_RE.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    match = _FLOAT_RE.match(text)
    return float(match.group(1)) if match else 0.0


def _bound(low: float, value: float, high: float) -> float:
    return max(low, min(value, high))


@dataclass
class RadSettings:
    """Every tunable of a lighting run, with the compiler's defaults."""

    mapname: str = ""
    verbose: bool = False
    numthreads: int = -1
    maxdata: int = DEFAULT_MAP_LIGHTING
    step: int = LMSTEP
    dumppatches: bool = False
    numbounce: int = 4
    extrasamples: bool = False
    noedgefix: bool = False
    dicepatches: bool = False
    basedir: str = "anoxdata"
    gamedir: str = ""
    moddir: str = ""
    subdiv: float = 64.0
    lightscale: float = 1.0
    sunradscale: float = 0.5
    saturation: float = 1.0
    patch_cutoff: float = 0.0
    direct_scale: float = 1.0
    entity_scale: float = 1.0
    nopvs: bool = False
    noblock: bool = False
    smoothing_value: float = DEFAULT_SMOOTHING_VALUE
    sample_nudge: float = DEFAULT_NUDGE_VALUE
    ambient: float = 0.0
    save_trace: bool = False
    maxlight: float = 255.0
    grayscale: float = 0.0
    memory: bool = False
    inbase: str = ""
    outbase: str = ""
    notices: list[str] = field(default_factory=list, compare=False)

    def smoothing_threshold(self) -> float:
        """Cosine of the phong smoothing angle."""
        return math.cos(self.smoothing_value * (math.pi / 180.0))

    def summary(self) -> list[str]:
        """The settings report printed before a run."""
        return [
            f"sample nudge: {self.sample_nudge:f}",
            f"ambient     : {self.ambient:f}",
            f"scale       : {self.lightscale:f}",
            f"maxlight    : {self.maxlight:f}",
            f"entity      : {self.entity_scale:f}",
            f"direct      : {self.direct_scale:f}",
            f"saturation  : {self.saturation:f}",
            f"bounce      : {self.numbounce:d}",
            f"radmin      : {self.patch_cutoff:f}",
            f"subdiv      : {self.subdiv:f}",
            f"smooth angle: {self.smoothing_value:f}",
            f"nudge       : {self.sample_nudge:f}",
            f"threads     : {self.numthreads:d}",
        ]


_FLAGS = {
    "-dump": ("dumppatches", None),
    "-v": ("verbose", None),
    "-extra": ("extrasamples", "extrasamples = true"),
    "-noedgefix": ("noedgefix", "no edge fix = true"),
    "-dice": ("dicepatches", "dicepatches = true"),
    "-nopvs": ("nopvs", "nopvs = true"),
    "-noblock": ("noblock", "noblock = true"),
    "-savetrace": ("save_trace", "savetrace = true"),
}


def parse_args(argv: Sequence[str]) -> RadSettings:
    """Parse the arguments that follow the program name.

    Options come first; exactly one map name must follow them.
    """
    settings = RadSettings()
    args = list(argv)
    notices = settings.notices
    i = 0

    def value() -> str:
        nonlocal i
        if i + 1 >= len(args):
            raise UsageError(USAGE)
        i += 1
        return args[i]

    while i < len(args):
        arg = args[i]
        if arg in _FLAGS:
            name, notice = _FLAGS[arg]
            setattr(settings, name, True)
            if notice:
                notices.append(notice)
        elif arg == "-help":
            raise UsageError(HELP, help_requested=True)
        elif arg == "-bounce":
            settings.numbounce = _atoi(value())
        elif arg == "-threads":
            settings.numthreads = _atoi(value())
        elif arg == "-maxdata":
            settings.maxdata = _atoi(value())
            if settings.maxdata > DEFAULT_MAP_LIGHTING:
                notices.append(
                    f"lighting maxdata ({settings.maxdata}) exceeds typical limit "
                    f"({DEFAULT_MAP_LIGHTING})."
                )
        elif arg == "-basedir":
            settings.basedir = value()
        elif arg == "-gamedir":
            settings.gamedir = value()
        elif arg == "-moddir":
            settings.moddir = value()
        elif arg in ("-chop", "-subdiv"):
            subdiv = float(_atoi(value()))
            if subdiv < MIN_SUBDIV:
                subdiv = float(MIN_SUBDIV)
                notices.append(f"subdiv set to minimum: {MIN_SUBDIV}")
            elif subdiv > MAX_SUBDIV:
                subdiv = float(MAX_SUBDIV)
                notices.append(f"subdiv set to maximum: {MAX_SUBDIV}")
            settings.subdiv = subdiv
        elif arg == "-scale":
            settings.lightscale = _atof(value())
        elif arg == "-sunradscale":
            scale = _atof(value())
            if scale < 0:
                scale = 0.0
                notices.append("sunradscale set to minimum: 0")
            settings.sunradscale = scale
            notices.append(f"sunradscale = {scale:f}")
        elif arg == "-saturation":
            settings.saturation = _atof(value())
        elif arg == "-radmin":
            settings.patch_cutoff = _atof(value())
        elif arg == "-direct":
            settings.direct_scale *= _atof(value())
        elif arg == "-entity":
            settings.entity_scale *= _atof(value())
        elif arg == "-smooth":
            settings.smoothing_value = _bound(0.0, _atof(value()), 90.0)
        elif arg == "-nudge":
            settings.sample_nudge = _atof(value())
        elif arg == "-ambient":
            settings.ambient = _bound(0.0, _atof(value()), 255.0)
        elif arg == "-maxlight":
            settings.maxlight = _bound(0.0, _atof(value()), 255.0)
        elif arg == "-tmpin":
            settings.inbase = "/tmp"
        elif arg == "-tmpout":
            settings.outbase = "/tmp"
        else:
            break
        i += 1

    if i != len(args) - 1:
        raise UsageError(USAGE)
    settings.mapname = args[i]
    return settings