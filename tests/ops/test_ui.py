"""Tests for the paginated UI model getters."""

import pytest

from batchplane.engine.memory import InMemoryJobEngine
from batchplane.engine.models import BatchStatus, Job, JobInstance, JobParameters, Step, StepExecution
from batchplane.ops.context import BatchContext
from batchplane.ops.launch import launch
from batchplane.ops.ui import (
    get_job_execution_ui_model,
    get_job_instance_ui_model,
    get_job_ui_model,
    get_step_execution_ui_model,
)


def expected_page_size(total: int, offset: int, size: int) -> int:
    return min(size, max(0, total - offset))


class TestJobUiModel:
    @pytest.fixture
    def two_jobs(self, mock_engine):
        mock_engine.count_jobs.return_value = 2
        mock_engine.list_jobs.side_effect = lambda offset, max: ["job1", "job2"][offset:offset + max]
        mock_engine.count_job_executions_for_job.side_effect = {"job1": 0, "job2": 2}.get
        mock_engine.is_launchable.side_effect = {"job1": True, "job2": False}.get
        mock_engine.is_incrementable.return_value = False
        return mock_engine

    def test_defaults(self, mock_ctx, two_jobs):
        model = get_job_ui_model(mock_ctx)

        two_jobs.list_jobs.assert_called_once_with(0, 10)
        assert model.model_total == 2
        assert [m.name for m in model.model_instances] == ["job1", "job2"]
        assert model.offset == 0
        assert model.max == 10
        assert model.has_more is False

    def test_enrichment(self, mock_ctx, two_jobs):
        job1, job2 = get_job_ui_model(mock_ctx).model_instances

        assert (job1.has_executions, job1.launchable, job1.incrementable) == (False, True, False)
        assert (job2.has_executions, job2.launchable, job2.execution_count) == (True, False, 2)

    def test_params_pushed_down(self, mock_ctx, two_jobs):
        model = get_job_ui_model(mock_ctx, {"offset": 1, "max": 1})

        two_jobs.list_jobs.assert_called_once_with(1, 1)
        assert model.model_total == 2
        assert [m.name for m in model.model_instances] == ["job2"]
        assert (model.offset, model.max) == (1, 1)

    def test_enrichment_bounded_by_page(self, mock_ctx, two_jobs):
        get_job_ui_model(mock_ctx, {"offset": 1, "max": 1})

        two_jobs.count_job_executions_for_job.assert_called_once_with("job2")
        two_jobs.is_launchable.assert_called_once_with("job2")
        two_jobs.is_incrementable.assert_called_once_with("job2")

    def test_echoes_caller_window(self, mock_ctx, mock_engine):
        mock_engine.count_jobs.return_value = 3
        mock_engine.list_jobs.return_value = []

        model = get_job_ui_model(mock_ctx, {"max": 5, "offset": 10})

        mock_engine.list_jobs.assert_called_once_with(10, 5)
        assert (model.offset, model.max) == (10, 5)
        assert model.model_instances == []
        assert model.model_total == 3

    def test_string_params(self, mock_ctx, two_jobs):
        get_job_ui_model(mock_ctx, {"offset": "1", "max": "1"})
        two_jobs.list_jobs.assert_called_once_with(1, 1)

    def test_to_dict(self, mock_ctx, two_jobs):
        d = get_job_ui_model(mock_ctx, {"max": 1}).to_dict()

        assert d["model_total"] == 2
        assert d["has_more"] is True
        assert d["model_instances"] == [{
            "name": "job1",
            "execution_count": 0,
            "has_executions": False,
            "launchable": True,
            "incrementable": False,
        }]


class TestJobInstanceUiModel:
    @pytest.fixture
    def two_instances(self, mock_engine, make_execution):
        instances = [JobInstance(1, "job1", JobParameters()), JobInstance(2, "job1", JobParameters())]
        executions = {
            1: [make_execution(1, status=BatchStatus.COMPLETED), make_execution(2, status=BatchStatus.FAILED)],
            2: [],
        }
        mock_engine.count_job_instances.return_value = 2
        mock_engine.list_job_instances.side_effect = lambda name, offset, max: instances[offset:offset + max]
        mock_engine.get_job_executions_for_job_instance.side_effect = lambda name, id: executions[id]
        return mock_engine

    def test_defaults(self, mock_ctx, two_instances):
        model = get_job_instance_ui_model(mock_ctx, "job1")

        two_instances.count_job_instances.assert_called_once_with("job1")
        two_instances.list_job_instances.assert_called_once_with("job1", 0, 10)
        assert model.model_total == 2
        assert len(model.model_instances) == 2
        assert model.context == {"job_name": "job1"}
        assert model.model_instances[0].last_execution.status is BatchStatus.FAILED
        assert model.model_instances[1].executions == []

    def test_with_params(self, mock_ctx, two_instances):
        model = get_job_instance_ui_model(mock_ctx, "job1", {"offset": 1, "max": 1})

        two_instances.list_job_instances.assert_called_once_with("job1", 1, 1)
        two_instances.get_job_executions_for_job_instance.assert_called_once_with("job1", 2)
        assert model.model_total == 2
        assert [m.id for m in model.model_instances] == [2]
        assert model.to_dict()["job_name"] == "job1"


class TestJobExecutionUiModel:
    def test_single_execution(self, mock_ctx, mock_engine, make_execution):
        mock_engine.get_job_executions_for_job_instance.return_value = [make_execution(1)]

        model = get_job_execution_ui_model(mock_ctx, "job1", 1)

        mock_engine.get_job_executions_for_job_instance.assert_called_once_with("job1", 1)
        assert model.model_total == 1
        assert len(model.model_instances) == 1
        assert model.context == {"job_name": "job1", "job_instance_id": 1}
        item = model.model_instances[0]
        assert item.step_count == 1
        assert item.duration.total_seconds() == 10

    def test_client_side_slice(self, mock_ctx, mock_engine, make_execution):
        mock_engine.get_job_executions_for_job_instance.return_value = [make_execution(1), make_execution(2)]

        model = get_job_execution_ui_model(mock_ctx, "job1", 1, {"offset": 1, "max": 1})

        assert model.model_total == 2
        assert [m.id for m in model.model_instances] == [2]
        assert model.to_dict()["job_instance_id"] == 1


class TestStepExecutionUiModel:
    @pytest.fixture
    def two_steps(self, mock_engine):
        steps = [
            StepExecution(
                n, f"testStep{n}", 1,
                status=BatchStatus.ABANDONED,
                read_count=3, write_count=5, write_skip_count=7, read_skip_count=9, process_skip_count=11,
            )
            for n in (1, 2)
        ]
        mock_engine.get_step_executions.return_value = steps
        return mock_engine

    def test_defaults(self, mock_ctx, two_steps):
        model = get_step_execution_ui_model(mock_ctx, 1)

        two_steps.get_step_executions.assert_called_once_with(1)
        assert model.model_total == 2
        assert len(model.model_instances) == 2
        assert model.context == {"job_execution_id": 1}
        step = model.model_instances[0]
        assert step.skip_count == 27
        assert step.to_dict()["status"] == "abandoned"

    def test_with_params(self, mock_ctx, two_steps):
        model = get_step_execution_ui_model(mock_ctx, 1, {"offset": 1, "max": 1})

        assert model.model_total == 2
        assert [m.step_name for m in model.model_instances] == ["testStep2"]


class TestPageSizeInvariant:
    """Page length is min(max, max(0, total - offset)) for all four getters."""

    @pytest.fixture
    def busy_ctx(self, ctx, engine) -> BatchContext:
        many = Job("many", steps=[Step(f"s{n}", lambda step, p: None) for n in range(5)])
        engine.register(many)
        for run in range(5):
            launch(ctx, "many", job_params={"run": run})
        failing = launch(ctx, "failing", job_params={"run": 1})
        for _ in range(3):
            ctx.engine.restart(failing.job_execution_id)
        return ctx

    @pytest.mark.parametrize("offset, size", [(0, 1), (0, 10), (2, 2), (4, 3), (5, 1), (50, 10)])
    def test_all_getters(self, busy_ctx, offset, size):
        engine: InMemoryJobEngine = busy_ctx.engine
        params = {"offset": offset, "max": size}
        many_execution = engine.list_job_executions_for_job("many", 0, 1)[0]
        failing_instance = engine.list_job_instances("failing", 0, 1)[0]

        models = [
            get_job_ui_model(busy_ctx, params),
            get_job_instance_ui_model(busy_ctx, "many", params),
            get_job_execution_ui_model(busy_ctx, "failing", failing_instance.id, params),
            get_step_execution_ui_model(busy_ctx, many_execution.id, params),
        ]
        totals = [4, 5, 4, 5]

        for model, total in zip(models, totals):
            assert model.model_total == total
            assert len(model.model_instances) == expected_page_size(total, offset, size)
            assert model.has_more == (offset + size < total)
