"""Loads configurations from .yaml files and expands environment variables.
"""
import copy
import os
import re

import toolz as tz
import yaml


class CmdNotFound(Exception):
    pass

# Resource defaults for each kind of stage. `threads`, `memory` and
# `max_concurrent` are passed to the batch scheduler, `cores` and `ram`
# to the wrapped program.
DEFAULT_RESOURCES = {
    "split": {"local_threads": 10},
    "index": {"threads": 32, "memory": 7, "cores": 64, "ram": 225000000000},
    "align": {"threads": 16, "memory": 5, "max_concurrent": 4, "cores": 32},
    "merge": {"threads": 10, "cores": 10},
}

DEFAULT_ALGORITHM = {
    "split_lines": 4000000,
    "success_token": "STARALIGN_DONE",
    "sj_support": 20,
    "runtime": "12:0:0",
}

_runtime_pat = re.compile(r"^\d+:\d+:\d+$")

# ## Retrieval functions

def load_config(config_file=None):
    """Load YAML config file, replacing environmental variables.

    Without a configuration file returns the defaults.
    """
    if config_file:
        with open(config_file) as in_handle:
            config = yaml.safe_load(in_handle) or {}
        config = _expand_paths(config)
    else:
        config = {}
    return _add_defaults(config)

def _add_defaults(config):
    config = copy.deepcopy(config)
    if "resources" not in config:
        config["resources"] = {}
    # lowercase resource names, the preferred way to specify, for back-compatibility
    newr = {}
    for k, v in config["resources"].items():
        if k.lower() != k:
            newr[k.lower()] = v
    config["resources"].update(newr)
    algorithm = copy.deepcopy(DEFAULT_ALGORITHM)
    algorithm.update(config.get("algorithm") or {})
    config["algorithm"] = algorithm
    return config

def _expand_paths(config):
    for field, setting in config.items():
        if isinstance(config[field], dict):
            config[field] = _expand_paths(config[field])
        else:
            config[field] = expand_path(setting)
    return config

def expand_path(path):
    """ Combines os.path.expandvars with replacing ~ with $HOME.
    """
    try:
        return os.path.expandvars(path.replace("~", "$HOME"))
    except AttributeError:
        return path

def get_resources(name, config):
    """Retrieve resources for a program or stage, merging configured values over defaults.
    """
    resources = copy.deepcopy(DEFAULT_RESOURCES.get(name, {}))
    configured = tz.get_in(["resources", name], config, {})
    if isinstance(configured, dict):
        resources.update(configured)
    return resources

def get_algorithm(key, config):
    return tz.get_in(["algorithm", key], config, DEFAULT_ALGORITHM.get(key))

def validate_runtime(runtime):
    """Check a wall-clock limit is in HH:MM:SS form, as the scheduler expects.
    """
    if not runtime or not _runtime_pat.match(str(runtime)):
        raise ValueError("Runtime must be in HH:MM:SS format: %s" % runtime)
    return str(runtime)

def get_program(name, config, default=None):
    """Retrieve the full path to an executable program.

    The program location can be set in `resources` as either a string or a
    dictionary with a `cmd` key, otherwise the PATH is searched. Raises
    CmdNotFound if no executable is available.
    """
    resources = config.get("resources", {})
    pconfig = resources.get(name, resources.get(name.lower(), {}))
    return _get_program_cmd(name, pconfig, config, default)

def _get_check_program_cmd(fn):
    def wrap(name, pconfig, config, default):
        is_ok = lambda f: os.path.isfile(f) and os.access(f, os.X_OK)
        program = expand_path(fn(name, pconfig, config, default))
        if is_ok(program):
            return program
        # search the PATH now
        for adir in os.environ.get('PATH', "").split(":"):
            if adir and is_ok(os.path.join(adir, program)):
                return os.path.join(adir, program)
        raise CmdNotFound("%s not in PATH env variable or not executable" % program)
    return wrap

@_get_check_program_cmd
def _get_program_cmd(name, pconfig, config, default):
    """Retrieve commandline of a program.
    """
    if pconfig is None:
        return name
    elif isinstance(pconfig, str):
        return pconfig
    elif "cmd" in pconfig:
        return pconfig["cmd"]
    elif default is not None:
        return default
    else:
        return name
