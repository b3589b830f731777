"""Constant definitions"""

# Animated cursors are limited to this many frames in the sprite sheet
MAX_FRAME_COUNT = 24

# ANI timing is expressed in jiffies (1/60 second)
TICKS_PER_SECOND = 60
DEFAULT_DISPLAY_RATE = 10

CURSOR_EXTENSIONS = ("cur", "ani")
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# Semi-transparent magenta marks bitmaps we could not decode
PLACEHOLDER_RGBA = (255, 0, 255, 128)

# Windows registry cursor names, in the fixed order used by the
# HKCU "Control Panel\Cursors\Schemes" value written from Scheme.Reg
WIN_CURSOR_ORDER = [
    "arrow",  # 0: Normal select
    "help",  # 1: Help select
    "appstarting",  # 2: Working in background
    "wait",  # 3: Busy
    "crosshair",  # 4: Precision select
    "ibeam",  # 5: Text select
    "pen",  # 6: Handwriting
    "no",  # 7: Unavailable
    "ns",  # 8: Vertical resize
    "we",  # 9: Horizontal resize
    "nwse",  # 10: Diagonal resize 1
    "nesw",  # 11: Diagonal resize 2
    "move",  # 12: Move
    "uparrow",  # 13: Alternate select
    "hand",  # 14: Link select
    "pin",  # 15: Location select
    "person",  # 16: Person select
]

# Windows cursor type to target role names. Resize cursors also serve
# the matching window-edge roles.
WIN_TO_ROLES = {
    "arrow": ("default",),
    "help": ("help",),
    "appstarting": ("progress",),
    "wait": ("wait",),
    "crosshair": ("crosshair",),
    "ibeam": ("xterm",),
    "pen": ("pencil",),
    "no": ("circle",),
    "ns": ("size_ver", "top_side", "bottom_side"),
    "we": ("size_hor", "left_side", "right_side"),
    "nwse": ("size_fdiag", "top_left_corner", "bottom_right_corner"),
    "nesw": ("size_bdiag", "top_right_corner", "bottom_left_corner"),
    "move": ("fleur",),
    "uparrow": ("uparrow",),
    "hand": ("hand",),
    # pin and person have no equivalent
    "pin": (),
    "person": (),
}

# Scheme position -> roles
POSITION_ROLES = [WIN_TO_ROLES[name] for name in WIN_CURSOR_ORDER]

# Conventional file base names shipped by Windows cursor packs, used
# when no install.inf is available
FILENAME_TO_WIN = {
    # Standard names
    "Normal": "arrow",
    "Help": "help",
    "Working": "appstarting",
    "Busy": "wait",
    "Precision": "crosshair",
    "Text": "ibeam",
    "Handwriting": "pen",
    "Unavailable": "no",
    "Vertical": "ns",
    "Horizontal": "we",
    "Diagonal1": "nwse",
    "Diagonal2": "nesw",
    "Move": "move",
    "Alternate": "uparrow",
    "Link": "hand",
    # Registry-style alternates
    "Arrow": "arrow",
    "AppStarting": "appstarting",
    "Wait": "wait",
    "Cross": "crosshair",
    "Crosshair": "crosshair",
    "IBeam": "ibeam",
    "NWPen": "pen",
    "No": "no",
    "SizeNS": "ns",
    "SizeWE": "we",
    "SizeNWSE": "nwse",
    "SizeNESW": "nesw",
    "SizeAll": "move",
    "UpArrow": "uparrow",
    "Hand": "hand",
}
