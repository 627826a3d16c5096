"""Command-line and configuration-file settings."""

from __future__ import annotations

import enum
import logging
import os
import re
import sys
from dataclasses import dataclass, field, fields
from typing import Iterable, List, Optional, Set

log = logging.getLogger(__name__)

CONFIG_FILENAME = ".tvhclient"


class OptionType(enum.Enum):
    """How an option's value is read."""

    NULL = 0
    STR = 1
    INT = 2
    BOOL = 3


@dataclass(frozen=True)
class Option:
    """A command-line option or, with no long name, a section heading."""

    short: Optional[str]
    long: Optional[str]
    desc: str
    type: OptionType
    attr: Optional[str] = None
    default: object = None


def _section(title: str) -> Option:
    return Option(None, None, title, OptionType.NULL)


OPTIONS = (
    _section("Generic Options"),
    Option("?", "help", "Show this page", OptionType.BOOL, "help", False),
    Option("v", "version", "Show version infomation", OptionType.BOOL, "version", False),

    _section("Configuration"),
    Option("c", "config", "Alternate config file location", OptionType.STR, "configfile"),

    _section("Server options"),
    Option("h", "host", "Hostname or IP address", OptionType.STR, "host"),
    Option("p", "port", "Port", OptionType.INT, "port", 9982),
    Option("U", "username", "HTSP username", OptionType.STR, "username"),
    Option("P", "password", "HTSP password", OptionType.STR, "password"),
    Option(None, "host2", "Server 2 Hostname or IP address", OptionType.STR, "host2"),
    Option(None, "port2", "Server 2 Port", OptionType.INT, "port2", 9982),
    Option(None, "username2", "Server 2 HTSP username", OptionType.STR, "username2"),
    Option(None, "password2", "Server 2 HTSP password", OptionType.STR, "password2"),

    _section("Startup options"),
    Option("i", "channel", "Number of initial channel to tune to", OptionType.INT,
           "initial_channel", -1),
    Option(None, "startup-stopped", "Do not stream a channel on startup", OptionType.BOOL,
           "startup_stopped", False),

    _section("Hardware configuration"),
    Option("o", "audio-output", "Audio output destination: hdmi,local", OptionType.STR,
           "audio_dest", "hdmi"),
    Option(None, "no-cec", "Disable CEC support", OptionType.BOOL, "nocec", False),

    _section("Playback options"),
    Option(None, "deinterlace-sd", "De-interlace SD content (<= 720x576)", OptionType.BOOL,
           "deinterlace_sd", False),
    Option(None, "deinterlace-hd", "De-interlace HD content (> 720x576)", OptionType.BOOL,
           "deinterlace_hd", False),
    Option(None, "idle-timeout", "Idle timeout (in minutes)", OptionType.INT,
           "idle_timeout", 0),
)


@dataclass
class Settings:
    """All settings, with the defaults from the option table."""

    help: bool = False
    version: bool = False
    configfile: Optional[str] = None
    host: Optional[str] = None
    port: int = 9982
    username: Optional[str] = None
    password: Optional[str] = None
    host2: Optional[str] = None
    port2: int = 9982
    username2: Optional[str] = None
    password2: Optional[str] = None
    initial_channel: int = -1
    startup_stopped: bool = False
    audio_dest: Optional[str] = "hdmi"
    nocec: bool = False
    deinterlace_sd: bool = False
    deinterlace_hd: bool = False
    idle_timeout: int = 0
    set_by_arg: Set[str] = field(default_factory=set)


class ConfigError(Exception):
    """Raised for an unknown option or a missing option value."""

    def __init__(self, message: str, prog: str = "tvhclient") -> None:
        super().__init__(message)
        self.message = message
        self.prog = prog

    def __str__(self) -> str:
        return (f"{self.prog}: {self.message}\n"
                f"Try `{self.prog} --help' for more information.")


class HelpRequested(Exception):
    """Raised when help is asked for; carries the usage text."""

    def __init__(self, usage: str) -> None:
        super().__init__(usage)
        self.usage = usage


_ATOI = re.compile(r"\s*([+-]?\d+)")


def _atoi(text: str) -> int:
    match = _ATOI.match(text)
    return int(match.group(1)) if match else 0


def find_option(arg: str, bare: bool = False) -> Optional[Option]:
    """Look up an option by command-line spelling, or by bare long name."""
    short = False
    if not bare:
        if len(arg) < 2 or not arg.startswith("-"):
            return None
        arg = arg[1:]
        if len(arg) == 1:
            short = True
        elif arg.startswith("-"):
            arg = arg[1:]
        else:
            return None

    for option in OPTIONS:
        if option.long is None:
            continue
        if short and option.short == arg[0]:
            return option
        if not short and option.long == arg:
            return option
    return None


def format_usage(prog: str) -> str:
    """Return the help text listing every option by section."""
    lines = [f"Usage: {prog} [OPTIONS]\n"]
    for option in OPTIONS:
        if option.long is None:
            lines.append(f"\n{option.desc}\n\n")
            continue
        sopt = f"-{option.short}," if option.short else "   "
        prefix = f"  {sopt} --{option.long}"
        for tok in option.desc.split("\n"):
            if tok:
                lines.append(f"{prefix:<30}{tok}\n")
                prefix = " " * len(prefix)
    lines.append("\n")
    return "".join(lines)


def dump_settings(settings: Settings) -> str:
    """Render every option's current value, noting those set on the command line."""
    lines = ["*** Global Settings: ***\n"]
    for option in OPTIONS:
        if option.long is None:
            continue
        value = getattr(settings, option.attr)
        if option.type is OptionType.STR:
            shown = "(null)" if value is None else value
        else:
            shown = str(int(value))
        suffix = " (set by arg)" if option.long in settings.set_by_arg else ""
        lines.append(f"{option.long}={shown}{suffix}\n")
    lines.append("************************\n")
    return "".join(lines)


def _convert(option: Option, text: str) -> object:
    if option.type is OptionType.STR:
        return text
    if option.type is OptionType.BOOL:
        return bool(_atoi(text))
    return _atoi(text)


def load_config(settings: Settings, lines: Iterable[str], prog: str = "tvhclient") -> Settings:
    """Apply name=value lines to settings not already given on the command line."""
    for line in lines:
        if not line or line[0] in "\n#[":
            continue
        name, sep, value = line.partition("=")
        if not sep:
            continue
        value = value.strip()
        option = find_option(name, bare=True)
        if option is None:
            raise ConfigError(f"unrecognised option '{name}'", prog)
        if option.long not in settings.set_by_arg:
            setattr(settings, option.attr, _convert(option, value))
    return settings


def _read_config_file(settings: Settings, prog: str, home: Optional[str]) -> None:
    if settings.configfile:
        path = settings.configfile
    elif home:
        path = os.path.join(home, CONFIG_FILENAME)
        log.info("Looking for config file %s", path)
    else:
        return
    try:
        with open(path, encoding="utf-8") as handle:
            load_config(settings, handle, prog)
    except FileNotFoundError:
        log.info("No config file found in %s", path)


def parse_args(argv: Optional[List[str]] = None, home: Optional[str] = None) -> Settings:
    """Build settings from argv (program name first), then the config file.

    Command-line values take precedence over the config file. The config
    file is the one given with --config, or one in the home directory.
    """
    if argv is None:
        argv = sys.argv
    if home is None:
        home = os.environ.get("HOME")
    prog = argv[0] if argv else "tvhclient"
    settings = Settings()
    for f in fields(Settings):
        if f.name != "set_by_arg":
            option = next((o for o in OPTIONS if o.attr == f.name), None)
            if option is not None:
                setattr(settings, f.name, option.default)

    args = iter(argv[1:])
    for arg in args:
        option = find_option(arg)
        if option is None:
            raise ConfigError(f"unrecognised option '{arg}'", prog)
        if option.type is OptionType.BOOL:
            setattr(settings, option.attr, True)
        else:
            value = next(args, None)
            if value is None:
                raise ConfigError(f"option {option.long} requires a value", prog)
            setattr(settings, option.attr,
                    _atoi(value) if option.type is OptionType.INT else value)
        settings.set_by_arg.add(option.long)
        if settings.help:
            raise HelpRequested(format_usage(prog))

    _read_config_file(settings, prog, home)
    return settings