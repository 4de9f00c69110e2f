""" Logging functionality for porempfa.

Logging is controlled by the configuration file porempfa.cfg, which should be
placed in the current working directory (where the python script is initiated).
All logging-related information is located in a section in the cfg-file with
heading logging; see sample file below.

By default, timing is switched off. It can be turned on by setting the keyword
'active' to True.

The decorated functions are classified as relevant for the following
(overlapping) categories

    all: Used to log all methods.
    assembly: Assembly of the global pressure system.
    discretization: Construction of interaction volumes and local stencils.
    grids: Grid construction and geometry.
    parameters: Material laws and other parameters.
    numerics: Linear solvers, velocity reconstruction and mobility updates.

Example logging section of porempfa.cfg:

    [logging]
    # Activate logging. Without this, the rest of the section has no effect
    active: True
    # To only log specific sections, use e.g.
    sections: assembly
    # multiple sections are separated by commas:
    sections: assembly, numerics

Module loggers (logging.getLogger(__name__)) are not affected by this section;
they follow the standard configuration of the logging package.

"""
import functools
import inspect
import logging
import os
import time
from typing import Dict

import porempfa as pm

__all__ = ["time_logger"]


# Try to access configuration information, as activated by the import of porempfa
try:
    config: Dict = pm.config["logging"]  # type: ignore
    raw_sections = config.get("sections", "all")
    active_sections = [s.strip().lower() for s in raw_sections.split(",")]
    logger_is_active = config.get("active", "false").strip().lower() == "true"
    always_log = "all" in active_sections

except KeyError:
    config = {}
    active_sections = ["all"]
    logger_is_active = False
    always_log = True

t_logger = logging.getLogger("Timer")
t_logger.setLevel(logging.INFO)


if logger_is_active and not t_logger.hasHandlers():
    # Add handler to write to file.
    time_handler = logging.FileHandler("PoreMpfaTimings.log")
    time_handler.setLevel(logging.INFO)
    time_formatter = logging.Formatter("%(message)s")
    time_handler.setFormatter(time_formatter)
    t_logger.addHandler(time_handler)

# Find where in the file path the directory 'porempfa' is located.
# We will use this below to strip away the common parts of file names.
separator = os.sep
path_length = __file__.split(separator).index("porempfa")


def time_logger(sections):
    """A decorator that measures elapsed time for a function.

    Parameters:
        sections (list of str): Logging categories the decorated function belongs
            to. The function is timed if any of them is active.

    """

    def inner_func(func):
        @functools.wraps(func)
        def log_time(*args, **kwargs):
            if not logger_is_active:
                # Shortcut if logging is not activated.
                return func(*args, **kwargs)
            elif always_log or any([s in active_sections for s in sections]):
                # Get the name of the file, but strip away the part above
                # '/src/porempfa'
                fn = separator.join(
                    inspect.getfile(func).split(separator)[path_length + 1 :]
                )
                name = f"{func.__name__} in file {fn}."

                t_logger.log(level=logging.INFO, msg=f"Calling {name}")

                start_time = time.perf_counter()
                value = func(*args, **kwargs)
                run_time = time.perf_counter() - start_time

                t_logger.log(
                    level=logging.INFO,
                    msg=f"Finished {name} Elapsed time: {run_time:.8f} s",
                )

                return value
            else:
                return func(*args, **kwargs)

        return log_time

    return inner_func
