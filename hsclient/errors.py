"""Result codes: decoding into their fields, lookup of readable names, reporting."""

from __future__ import annotations

import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)

DEFAULT_RES = "<Unknown>"

# Levels
RL_SUCCESS = 0
RL_INFO = 1
RL_STATUS = 25
RL_TEMPORARY = 26
RL_PERMANENT = 27
RL_USAGE = 28
RL_REINITIALIZE = 29
RL_RESET = 30
RL_FATAL = 31

# Summaries
RS_SUCCESS = 0
RS_NOP = 1
RS_WOULDBLOCK = 2
RS_OUTOFRESOURCE = 3
RS_NOTFOUND = 4
RS_INVALIDSTATE = 5
RS_NOTSUPPORTED = 6
RS_INVALIDARG = 7
RS_WRONGARG = 8
RS_CANCELED = 9
RS_STATUSCHANGED = 10
RS_INTERNAL = 11

# Modules that carry their own description tables
RM_COMMON = 0
RM_KERNEL = 1
RM_OS = 6
RM_FS = 17
RM_SRV = 25
RM_AM = 32
RM_HTTP = 40
RM_MVD = 92
RM_NFC = 93
RM_QTM = 96
RM_APPLICATION = 254

# Descriptions of application-defined results (module RM_APPLICATION)
APP_NOSUPPORT = 0
APP_CANCELLED = 1
APP_NOSPACE = 2
APP_NOREINSTALL = 3
APP_TITLE_MISMATCH = 4
APP_NORANGE = 5
APP_NOSIZE = 6
APP_JSON_FAIL = 7
APP_NON200 = 8
APP_API_FAIL = 9
APP_TOO_LARGE = 10
APP_FILEFWD_FAIL = 11
APP_TITLE_UNLISTED = 12
APP_OUT_OF_MEMORY = 13
APP_INCOMPATIBLE_FONT = 14

DESCRIPTIONS: dict[int, dict[int, str]] = {
    RM_KERNEL: {
        2: "Invalid DMA buffer memory permissions",
        1015: "Invalid handle",
    },
    RM_OS: {
        1: "Out of synchronization object",
        2: "Out of shared memory objects",
        9: "Out of session objects",
        10: "Not enough memory for allocation",
        20: "Wrong permissions for unprivileged access",
        26: "Session closed by remote process",
        47: "Invalid command header",
        52: "Max port connections exceeded",
    },
    RM_FS: {
        101: "Archive not mounted",
        120: "Doesn't exist / Failed to open",
        141: "Game card not inserted",
        171: "Bus: Busy / Underrun",
        172: "Bus: Illegal function",
        190: "Already exists / Failed to create",
        210: "Partition full",
        230: "Illegal operation / File in use",
        231: "Resource locked",
        250: "FAT operation denied",
        265: "Bus: Timeout",
        331: "Bus error / TWL partition invalid",
        332: "Bus: Stop bit error",
        391: "Hash verification failure",
        392: "RSA/Hash verification failure",
        395: "Invalid RomFS or save data block hash",
        630: "Archive permission denied",
        702: "Invalid path / Inaccessible archive",
        705: "Offset out of bounds",
        721: "Reached file size limit",
        760: "Unsupported operation",
        761: "ExeFS read size mismatch",
    },
    RM_SRV: {
        5: "Invalid service name length",
        6: "Service access denied",
        7: "String size mismatch",
    },
    RM_AM: {
        2: "Previous error invalidated context",
        4: "Wrong installation state",
        8: "non-linear write",
        18: "finalization of incomplete install",
        37: "Invalid NCCH",
        39: "Invalid or outdated title version",
        41: "Error type 1",
        43: "Database does not exist",
        44: "Attempted to delete system title",
        101: "Error type -1",
        102: "Error type -2",
        103: "Error type -3",
        104: "Error type -4",
        105: "Error type -5",
        106: "Bad signature/hash or devunit",
        107: "Error type -7",
        108: "Error type -8",
        109: "Error type -9",
        110: "Error type -10",
        111: "Error type -11",
        112: "Error type -12",
        113: "Error type -13",
        114: "Error type -14",
        393: "Invalid database",
        1020: "Already exists",
    },
    RM_HTTP: {
        3: "POST data too large",
        60: "Failed to verify TLS certificate",
        70: "Network unavailable",
        72: "Timed out",
        73: "Failed to connect to host",
        102: "Wrong context handle",
        105: "Request timed out",
    },
    RM_MVD: {271: "Invalid configuration"},
    RM_NFC: {512: "Invalid NFC state"},
    RM_QTM: {8: "Camera busy"},
    RM_APPLICATION: {
        APP_NOSUPPORT: "Can't install n3ds exclusive games on an o3ds",
        APP_CANCELLED: "Cancelled",
        APP_NOSPACE: "Too little free space on your SD Card or NAND",
        APP_NOREINSTALL: "Can't reinstall title unless asked",
        APP_TITLE_MISMATCH: "Title count and list mismatch",
        APP_NORANGE: "Server doesn't support range",
        APP_NOSIZE: "Server doesn't support length",
        APP_JSON_FAIL: "Failed to parse server json",
        APP_NON200: "Server didn't return status code 200",
        APP_API_FAIL: "API failed to process request",
        APP_TOO_LARGE: "Log was too large to upload",
        APP_FILEFWD_FAIL: "Failed to install file forwarder",
        APP_TITLE_UNLISTED: "Title is not listed",
        APP_OUT_OF_MEMORY: "Out of memory",
        APP_INCOMPATIBLE_FONT: "Incompatible font",
    },
}

LEVEL_NAMES: dict[int, str] = {
    RL_SUCCESS: "Success",
    RL_INFO: "Info",
    RL_FATAL: "Fatal",
    RL_RESET: "Reset",
    RL_REINITIALIZE: "Reinitialize",
    RL_USAGE: "Usage",
    RL_PERMANENT: "Permanent",
    RL_TEMPORARY: "Temporary",
    RL_STATUS: "Status",
}

SUMMARY_NAMES: dict[int, str] = {
    RS_SUCCESS: "Success",
    RS_NOP: "No operation",
    RS_WOULDBLOCK: "Would block",
    RS_OUTOFRESOURCE: "Out of resource",
    RS_NOTFOUND: "Not found",
    RS_INVALIDSTATE: "Invalid state",
    RS_NOTSUPPORTED: "Not supported",
    RS_INVALIDARG: "Invalid argument",
    RS_WRONGARG: "Wrong argument",
    RS_CANCELED: "Canceled",
    RS_STATUSCHANGED: "Status changed",
    RS_INTERNAL: "Internal",
}

MODULE_NAMES: dict[int, str] = {
    0: "Common", 1: "Kernel", 2: "Util", 3: "File server", 4: "Loader server",
    5: "TCB", 6: "OS", 7: "DBG", 8: "DMNT", 9: "PDN", 10: "GSP", 11: "I2C",
    12: "GPIO", 13: "DD", 14: "CODEC", 15: "SPI", 16: "PXI", 17: "FS", 18: "DI",
    19: "HID", 20: "CAM", 21: "PI", 22: "PM", 23: "PMLOW", 24: "FSI", 25: "SRV",
    26: "NDM", 27: "NWM", 28: "SOC", 29: "LDR", 30: "ACC", 31: "RomFS", 32: "AM",
    33: "HIO", 34: "Updater", 35: "MIC", 36: "FND", 37: "MP", 38: "MPWL", 39: "AC",
    40: "HTTP", 41: "DSP", 42: "SND", 43: "DLP", 44: "RM_HIO_LOW", 45: "CSND",
    46: "SSL", 47: "AMLOW", 48: "NEX", 49: "Friends", 50: "RDT", 51: "Applet",
    52: "NIM", 53: "PTM", 54: "MIDI", 55: "MC", 56: "SWC", 57: "FatFS", 58: "NGC",
    59: "CARD", 60: "CARDNOR", 61: "SDMC", 62: "BOSS", 63: "DBM", 64: "Config",
    65: "PS", 66: "CEC", 67: "IR", 68: "UDS", 69: "PL", 70: "CUP", 71: "Gyroscope",
    72: "MCU", 73: "NS", 74: "NEWS", 75: "RO", 76: "GD", 77: "CARDSPI", 78: "EC",
    79: "Web browser", 80: "TEST", 81: "ENC", 82: "PIA", 83: "ACT", 84: "VCTL",
    85: "OLV", 86: "NEIA", 87: "NPNS", 90: "AVD", 91: "L2B", 92: "MVD", 93: "NFC",
    94: "UART", 95: "SPM", 96: "QTM", 97: "NFP", 254: "Application",
}


def make_result(level: int, summary: int, module: int, description: int) -> int:
    """Pack the four fields into a 32-bit result code."""
    return (
        ((level & 0x1F) << 27)
        | ((summary & 0x3F) << 21)
        | ((module & 0xFF) << 10)
        | (description & 0x3FF)
    )


@dataclass(frozen=True)
class ErrorInfo:
    """A result code split into its fields with readable names."""

    full: int
    description: int
    description_name: str
    module: int
    module_name: str
    level: int
    level_name: str
    summary: int
    summary_name: str


def get_error(res: int) -> ErrorInfo:
    """Decode a result code."""
    raw = res & 0xFFFFFFFF
    level = (raw >> 27) & 0x1F
    summary = (raw >> 21) & 0x3F
    module = (raw >> 10) & 0xFF
    description = raw & 0x3FF
    return ErrorInfo(
        full=raw,
        description=description,
        description_name=DESCRIPTIONS.get(module, {}).get(description, DEFAULT_RES),
        module=module,
        module_name=MODULE_NAMES.get(module, DEFAULT_RES),
        level=level,
        level_name=LEVEL_NAMES.get(level, DEFAULT_RES),
        summary=summary,
        summary_name=SUMMARY_NAMES.get(summary, DEFAULT_RES),
    )


def pad8code(code: int) -> str:
    """Format a result code as eight upper-case hex digits."""
    return f"{code & 0xFFFFFFFF:08X}"


def format_err(msg: str, code: int) -> str:
    """Append a result code in decimal to a message."""
    return f"{msg} ({code})"


def report_error(info: ErrorInfo, note: str = "") -> list[str]:
    """Log a report of an error and return its lines."""
    lines = [
        "===========================",
        "| ERROR REPORT            |",
        "===========================",
    ]
    if note:
        lines.append(f"Note        : {note}")
    lines += [
        f"Result Code : 0x{info.full:08X}",
        f"Description : {info.description_name} (0x{info.description:08X})",
        f"Module      : {info.module_name} (0x{info.module:08X})",
        f"Level       : {info.level_name} (0x{info.level:08X})",
        f"Summary     : {info.summary_name} (0x{info.summary:08X})",
        "===========================",
    ]
    for line in lines:
        log.error("%s", line)
    return lines


class HShopError(Exception):
    """An operation failed with a result code."""

    def __init__(self, result: int, message: str | None = None) -> None:
        self.result = result & 0xFFFFFFFF
        self.info = get_error(self.result)
        text = message or self.info.description_name
        super().__init__(f"{text} ({pad8code(self.result)})")