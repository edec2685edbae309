"""Run pipeline stages with checkpointing, allowing safe restarts after failures.

Each batch stage writes its commands to `<name>.submit`, hands the file to
the batch scheduler and waits for it. Every command echoes a success token
to its stderr log when it exits cleanly, so the stage is verified by
counting tokens in `BATCH_<name>/<name>.submit.e*`. Only a verified stage
gets a `<name>.done` marker, and a stage with a marker is skipped on rerun.

A YAML manifest records the state of each stage for inspection. The marker
files remain the record of completion.
"""
import datetime
import enum
import os
import subprocess

import yaml

from staralign import utils
from staralign.distributed import qbatch
from staralign.distributed.transaction import file_transaction
from staralign.log import logger
from staralign.pipeline import config_utils

MANIFEST_FILE = "pipeline_status.yaml"


class StageFailure(Exception):
    """A stage ran but could not be verified as complete.
    """
    def __init__(self, stage, msg):
        self.stage = stage
        super(StageFailure, self).__init__("%s: %s" % (stage, msg))


class StageState(enum.Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    FAILED = "failed"


class Stage(object):
    """A unit of work submitted to the batch scheduler as a file of commands.

    generate -- callable returning the list of shell commands to run
    resources -- scheduler hints, see `qbatch.submit_cl`
    expected -- number of success tokens required, defaults to one per command
    verify -- optional callable returning a list of problems found in outputs
    """
    local = False

    def __init__(self, name, generate, resources=None, expected=None, verify=None):
        self.name = name
        self.generate = generate
        self.resources = resources or {}
        self.expected = expected
        self.verify = verify


class LocalStage(object):
    """A unit of work run inside the pipeline process.

    run -- callable doing the work
    verify -- callable returning a list of problems found in outputs
    """
    local = True

    def __init__(self, name, run, verify):
        self.name = name
        self.run = run
        self.verify = verify


def submit_file(work_dir, name):
    return os.path.join(work_dir, "%s.submit" % name)

def done_file(work_dir, name):
    return os.path.join(work_dir, "%s.done" % name)

def batch_dir(work_dir, name):
    return os.path.join(work_dir, "BATCH_%s" % name)

def is_done(work_dir, name):
    return os.path.exists(done_file(work_dir, name))

def invalidate(work_dir, names):
    """Remove completion markers so the named stages run again.
    """
    for name in names:
        if is_done(work_dir, name):
            logger.info("Removing completion marker for %s" % name)
            utils.remove_safe(done_file(work_dir, name))


class Manifest(object):
    """Persisted record of stage states in the work directory.
    """
    def __init__(self, work_dir, config=None):
        self.fname = os.path.join(work_dir, MANIFEST_FILE)
        self.config = config
        self.stages = {}
        if os.path.exists(self.fname):
            with open(self.fname) as in_handle:
                self.stages = (yaml.safe_load(in_handle) or {}).get("stages", {})

    def state(self, name):
        return StageState(self.stages.get(name, {}).get("state", StageState.PENDING.value))

    def update(self, name, state, **kwargs):
        info = self.stages.setdefault(name, {})
        info.update(kwargs)
        info["state"] = state.value
        info["updated"] = datetime.datetime.now().isoformat(timespec="seconds")
        self.save()

    def save(self):
        with file_transaction(self.config, self.fname) as tx_out_file:
            with open(tx_out_file, "w") as out_handle:
                yaml.safe_dump({"stages": self.stages}, out_handle, default_flow_style=False)


def run_stage(stage, work_dir, config, manifest, runtime=None, local_threads=0):
    """Run a stage unless already complete, returning True if work was done.

    Raises StageFailure if the stage could not be verified.
    """
    if is_done(work_dir, stage.name):
        logger.info("%s ... Already done." % stage.name)
        if manifest.state(stage.name) != StageState.VERIFIED:
            manifest.update(stage.name, StageState.VERIFIED)
        return False
    if stage.local:
        _run_local(stage, work_dir, manifest)
    else:
        _run_batch(stage, work_dir, config, manifest, runtime, local_threads)
    qbatch.touch(done_file(work_dir, stage.name))
    logger.info("%s ... Finished." % stage.name)
    return True

def _run_local(stage, work_dir, manifest):
    manifest.update(stage.name, StageState.SUBMITTED)
    stage.run()
    _check_outputs(stage, manifest)
    manifest.update(stage.name, StageState.VERIFIED)

def _run_batch(stage, work_dir, config, manifest, runtime, local_threads):
    commands = stage.generate()
    if not commands:
        _fail(stage, manifest, "no commands generated")
    expected = stage.expected if stage.expected is not None else len(commands)
    token = config_utils.get_algorithm("success_token", config)
    qbatch_cmd = config_utils.get_program("qbatch", config)

    sfile = submit_file(work_dir, stage.name)
    with file_transaction(config, sfile) as tx_sfile:
        with open(tx_sfile, "w") as out_handle:
            for cmd in commands:
                out_handle.write(qbatch.with_token(cmd, token) + "\n")
    log_dir = batch_dir(work_dir, stage.name)
    # logs from an earlier failed attempt would be counted again
    utils.remove_safe(log_dir)

    manifest.update(stage.name, StageState.SUBMITTED, commands=len(commands),
                    expected=expected)
    logger.info("%s: submitting %s commands" % (stage.name, len(commands)))
    try:
        qbatch.submit(qbatch_cmd, sfile, log_dir, os.path.basename(sfile),
                      stage.resources, runtime, local_threads)
    except subprocess.CalledProcessError as e:
        _fail(stage, manifest, "batch submission failed: %s" % e)
    observed = qbatch.count_tokens(log_dir, os.path.basename(sfile), token)
    manifest.update(stage.name, StageState.SUBMITTED, observed=observed)
    if observed != expected:
        _fail(stage, manifest, "found %s of %s expected successful commands in %s"
              % (observed, expected, log_dir))
    _check_outputs(stage, manifest)
    manifest.update(stage.name, StageState.VERIFIED)

def _check_outputs(stage, manifest):
    problems = stage.verify() if stage.verify else []
    if problems:
        _fail(stage, manifest, "; ".join(problems))

def _fail(stage, manifest, msg):
    manifest.update(stage.name, StageState.FAILED, error=msg)
    raise StageFailure(stage.name, "%s; please identify error and restart" % msg)

def run_stages(stages, work_dir, config, runtime=None, local_threads=0):
    """Run stages in order, re-running everything downstream of a stage that ran.

    Returns the names of stages which did work.
    """
    manifest = Manifest(work_dir, config)
    ran = []
    for i, stage in enumerate(stages):
        if run_stage(stage, work_dir, config, manifest, runtime, local_threads):
            ran.append(stage.name)
            invalidate(work_dir, [s.name for s in stages[i + 1:]])
    return ran
