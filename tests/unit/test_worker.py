import pytest

from plandropper.jobs import worker


@pytest.mark.asyncio
async def test_run_worker_runs_job(monkeypatch):
    called = {"ok": False}

    async def dummy_job():
        called["ok"] = True

    monkeypatch.setitem(worker.JOB_REGISTRY, "dummy", dummy_job)

    await worker.run_worker("dummy")

    assert called["ok"] is True


@pytest.mark.asyncio
async def test_run_worker_unknown_job():
    with pytest.raises(ValueError):
        await worker.run_worker("missing")


def test_hotness_jobs_are_registered():
    assert {"hotness_recalculation", "hotness_recalculation_once"} <= set(worker.JOB_REGISTRY)


def test_job_name_falls_back_to_env(monkeypatch):
    monkeypatch.setattr(worker.sys, "argv", ["worker"])
    monkeypatch.setenv("WORKER_JOB", " Hotness_Recalculation_Once ")

    assert worker._resolve_job_name() == "hotness_recalculation_once"
