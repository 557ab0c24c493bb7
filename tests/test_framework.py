"""
Unit tests for framework support classes

Tests Closer, TaskContext, Instrumented, ConverterRegistry, errors,
configuration loading and the example scripts.
"""

import runpy
from pathlib import Path

import pytest

import datamover.converters  # noqa: F401
from datamover import framework
from datamover.converters import IdentityConverter, JsonStringConverter
from datamover.framework import (
    Closer,
    ConversionError,
    ConverterRegistry,
    DataConversionError,
    ErrorKind,
    Instrumented,
    MetricsConfig,
    PipelineConfig,
    SchemaConversionError,
    TaskConfig,
    TaskContext,
)
from datamover.framework import metrics


class Resource:
    def __init__(self, name, log, error=None):
        self.name = name
        self.log = log
        self.error = error

    def close(self):
        self.log.append(self.name)
        if self.error is not None:
            raise self.error


class TestCloser:
    """Test Closer functionality."""

    def test_register_returns_resource(self):
        """Test register hands back the resource."""
        resource = Resource("a", [])
        assert Closer().register(resource) is resource

    def test_closes_in_reverse_order(self):
        """Test resources close most recently registered first."""
        log = []
        closer = Closer()
        for name in ["a", "b", "c"]:
            closer.register(Resource(name, log))

        closer.close()

        assert log == ["c", "b", "a"]
        assert len(closer) == 0

    def test_close_is_idempotent(self):
        """Test resources are closed only once."""
        log = []
        closer = Closer()
        closer.register(Resource("a", log))
        closer.close()
        closer.close()
        assert log == ["a"]

    def test_single_failure_reraised(self):
        """Test one failing resource does not stop the others."""
        log = []
        error = OSError("disk")
        closer = Closer()
        closer.register(Resource("a", log))
        closer.register(Resource("b", log, error=error))
        closer.register(Resource("c", log))

        with pytest.raises(OSError) as excinfo:
            closer.close()

        assert excinfo.value is error
        assert log == ["c", "b", "a"]

    def test_multiple_failures_grouped(self):
        """Test several failures are reported together."""
        log = []
        closer = Closer()
        closer.register(Resource("a", log, error=ValueError("a")))
        closer.register(Resource("b", log, error=OSError("b")))

        with pytest.raises(ExceptionGroup) as excinfo:
            closer.close()

        assert [str(e) for e in excinfo.value.exceptions] == ["b", "a"]
        assert log == ["b", "a"]

    def test_register_requires_close(self):
        """Test objects without close() are rejected."""
        with pytest.raises(TypeError):
            Closer().register(object())

    def test_context_manager(self):
        """Test Closer closes on exit."""
        log = []
        with Closer() as closer:
            closer.register(Resource("a", log))
        assert log == ["a"]


class TestTaskContext:
    """Test TaskContext functionality."""

    def test_properties(self):
        """Test typed property getters."""
        context = TaskContext(
            "task_0",
            properties={"n": "5", "flag": "yes", "names": "a, b,c", "items": [1, 2]},
        )

        assert context.get_prop("missing", "x") == "x"
        assert context.get_prop_as_int("n") == 5
        assert context.get_prop_as_int("missing", 7) == 7
        assert context.get_prop_as_bool("flag") is True
        assert context.get_prop_as_bool("missing") is False
        assert context.get_prop_as_list("names") == ["a", "b", "c"]
        assert context.get_prop_as_list("items") == ["1", "2"]

    def test_invalid_properties(self):
        """Test malformed typed properties raise ValueError."""
        context = TaskContext("task_0", properties={"n": "five", "flag": "maybe"})
        with pytest.raises(ValueError):
            context.get_prop_as_int("n")
        with pytest.raises(ValueError):
            context.get_prop_as_bool("flag")

    def test_task_id_required(self):
        """Test task_id must be non-empty."""
        with pytest.raises(ValueError):
            TaskContext("")

    def test_metric_context_tags(self):
        """Test the task's metric context is tagged from the task and its properties."""
        context = TaskContext("task_0", job_name="job", properties={"metrics.tags.env": "dev"})

        metric_context = context.metric_context
        assert metric_context is context.metric_context
        assert metric_context.name == "job"
        assert metric_context.tags == {"job_name": "job", "task_id": "task_0", "env": "dev"}

    def test_metric_context_reservoir_size(self):
        """Test the reservoir size property is applied to the metric context."""
        context = TaskContext("task_0", properties={"metrics.reservoir.size": "50"})
        assert context.metric_context.reservoir_size == 50

    def test_close_closes_metric_context(self):
        """Test closing the task closes its metric context."""
        context = TaskContext("task_0")
        metric_context = context.metric_context
        context.close()
        assert metric_context.closed


class TestInstrumented:
    """Test Instrumented functionality."""

    def test_creates_child_context(self):
        """Test a child scope named after the component class."""
        context = TaskContext("task_0", job_name="job")
        instrumented = Instrumented(context, IdentityConverter)

        assert instrumented.get_context().full_name == "job.IdentityConverter"
        assert instrumented.get_context().tags["component"] == (
            "datamover.converters.identity.IdentityConverter"
        )

    def test_close(self):
        """Test closing releases the child scope."""
        context = TaskContext("task_0")
        instrumented = Instrumented(context, IdentityConverter)
        instrumented.close()
        assert context.metric_context.get_children() == {}

    def test_requires_context(self):
        """Test a task context is mandatory."""
        with pytest.raises(ValueError):
            Instrumented(None, IdentityConverter)


class TestErrors:
    """Test conversion error tagging."""

    def test_error_kinds(self):
        """Test each error carries its kind tag."""
        assert DataConversionError("x").kind is ErrorKind.DATA_CONVERSION
        assert SchemaConversionError("x").kind is ErrorKind.SCHEMA_CONVERSION
        assert isinstance(DataConversionError("x"), ConversionError)
        assert str(DataConversionError("bad record")) == "bad record"


class TestConverterRegistry:
    """Test ConverterRegistry functionality."""

    def test_builtin_converters_registered(self):
        """Test importing the converters package registers them."""
        names = ConverterRegistry.list_converters()
        for name in ["identity", "json_string", "arrow_schema", "explode"]:
            assert name in names

    def test_create_with_params(self):
        """Test creating a converter with parameters."""
        converter = ConverterRegistry.create("json_string", {"field": "payload"})
        assert isinstance(converter, JsonStringConverter)
        assert converter.field == "payload"

    def test_unknown_converter(self):
        """Test unknown names list the available converters."""
        with pytest.raises(ValueError, match="Available converters"):
            ConverterRegistry.create("nope")


class TestConfig:
    """Test configuration loading."""

    def test_from_yaml(self, tmp_path):
        """Test loading a full configuration file."""
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text(
            """
task:
  task_id: task_7
  job_name: orders
  max_failures: 3
  properties:
    source: kafka
converters:
  - name: json_string
    params:
      field: payload
  - name: identity
    enabled: false
metrics:
  report_on_completion: false
  reservoir_size: 100
  tags:
    env: test
"""
        )

        config = PipelineConfig.from_yaml(str(config_file))

        assert config.task.task_id == "task_7"
        assert config.task.job_name == "orders"
        assert config.task.max_failures == 3
        assert config.task.properties == {"source": "kafka"}
        assert [c.name for c in config.converters] == ["json_string", "identity"]
        assert [c.name for c in config.enabled_converters()] == ["json_string"]
        assert config.converters[0].params == {"field": "payload"}
        assert config.metrics.report_on_completion is False
        assert config.metrics.reservoir_size == 100
        assert config.metrics.tags == {"env": "test"}

    def test_defaults(self):
        """Test defaults when only converters are given."""
        config = PipelineConfig.from_dict({"converters": [{"name": "identity"}]})
        assert config.task == TaskConfig()
        assert config.metrics == MetricsConfig()

    def test_no_converters(self):
        """Test a pipeline needs at least one converter."""
        with pytest.raises(ValueError):
            PipelineConfig.from_dict({"task": {"task_id": "t"}})

    def test_invalid_values(self):
        """Test validation of numeric settings."""
        with pytest.raises(ValueError):
            TaskConfig(log_interval=0)
        with pytest.raises(ValueError):
            TaskConfig(max_failures=-1)
        with pytest.raises(ValueError):
            MetricsConfig(reservoir_size=0)


class TestExamples:
    """Test the example scripts shipped with the package."""

    EXAMPLES_DIR = Path(__file__).resolve().parents[1] / "examples"

    def test_metrics_reporter_exported(self):
        """Test the metrics reporter is importable from the framework package."""
        assert framework.MetricsReporter is metrics.MetricsReporter
        assert "MetricsReporter" in framework.__all__

    def test_custom_converter_example_runs(self, capsys):
        """Test the custom converter example runs end to end."""
        runpy.run_path(str(self.EXAMPLES_DIR / "custom_converter_example.py"), run_name="__main__")

        output = capsys.readouterr().out
        assert "'a, b, c' -> ['a', 'b', 'c']" in output
        assert "records in: 3" in output
        assert "records out: 4" in output
        assert "records failed: 1" in output
