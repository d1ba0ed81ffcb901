"""Configuration and constants for the discdump package."""
from __future__ import annotations

from typing import Dict, Tuple

# Date format used for dumping dates and executable build dates
DATE_FMT = "%Y-%m-%d %H:%M:%S"
EXE_DATE_FMT = "%Y-%m-%d"

# Settings file used by the CLI when none is given
SETTINGS_FILE = "discdump.json"

# Reread defaults applied when the user option is 0
DEFAULT_C2_REREAD_COUNT = 20
DEFAULT_DVD_REREAD_COUNT = 10
DEFAULT_MULTI_SECTOR_READ_VALUE = 0
DEFAULT_REDUMPER_RETRIES = 20

# Inclusive drive speed bounds per DiscImageCreator verb
DIC_SPEED_BOUNDS: Dict[str, Tuple[int, int]] = {
    "audio": (0, 72),
    "bd": (0, 72),
    "cd": (0, 72),
    "data": (0, 72),
    "dvd": (0, 24),  # officially 0-16
    "gd": (0, 72),
    "sacd": (0, 16),
    "swap": (0, 72),
    "xbox": (0, 72),
    "xboxswap": (0, 72),
    "xgd2swap": (0, 72),
    "xgd3swap": (0, 72),
}

# Blu-ray PIC data is trimmed to this many hex characters for PS3/PS4/PS5
PIC_TRIM_LENGTH = 264

# Sector size used to sanity check Blu-ray layerbreaks against the image size
SECTOR_SIZE = 2048

# Messages written into SubmissionInfo when a value cannot be extracted
NO_PVD_MESSAGE = "Disc has no PVD"
ERROR_COUNT_MESSAGE = "Error retrieving error count"
UNKNOWN_VERSION = "Unknown Version"

# Artifact name -> (log suffix, binary)
DIC_ARTIFACTS: Dict[str, Tuple[str, bool]] = {
    "c2Error": ("_c2Error.txt", False),
    "ccd": (".ccd", False),
    "cmd": ("_cmd.txt", False),
    "csskey": ("_CSSKey.txt", False),
    "cue": (".cue", False),
    "dat": (".dat", False),
    "disc": ("_disc.txt", False),
    "drive": ("_drive.txt", False),
    "img_cue": ("_img.cue", False),
    "img_EdcEcc": (".img_EdcEcc.txt", False),
    "mainError": ("_mainError.txt", False),
    "mainInfo": ("_mainInfo.txt", False),
    "sub": (".sub", True),
    "subError": ("_subError.txt", False),
    "subInfo": ("_subInfo.txt", False),
    "subIntention": ("_subIntention.txt", False),
    "volDesc": ("_volDesc.txt", False),
}

REDUMPER_ARTIFACTS: Dict[str, Tuple[str, bool]] = {
    "cue": (".cue", False),
    "log": (".log", False),
    "subcode": (".subcode", True),
}
