
"""
Global configuration dictionary and default parameters used across cvdemo.

Stores the threshold default, centroid marker styling, the plugin directory
name and the allow-list of save formats shared by the engine and the runner.
"""

con_dict = {
    # threshold cutoff used until the user picks another (0-255)
    "threshold_default": 128,

    # centroid markers drawn by the object counting operation
    "marker_radius": 3,
    "marker_colour": (255, 0, 0),

    # plugin directory, relative to the package install location
    "plugin_dir": "plugins",

    # extensions accepted when saving
    "save_formats": ("png", "bmp", "jpg"),
}


def set_value(key, value):
    if key not in con_dict:
        raise KeyError(key)
    # naive cast
    ty = type(con_dict[key])
    con_dict[key] = ty(value)


def get_all():
    return con_dict
