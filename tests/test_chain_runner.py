"""
Unit tests for ConverterChain, TaskRunner and the CLI
"""

import json
import sys

import pytest

from datamover import cli
from datamover.converters import ExplodeConverter, IdentityConverter, JsonStringConverter
from datamover.framework import (
    ConverterChain,
    ConverterState,
    DataConversionError,
    PipelineConfig,
    TaskContext,
    TaskRunner,
)


@pytest.fixture
def context():
    return TaskContext("task_0", job_name="test_job")


def json_explode_chain():
    return ConverterChain([JsonStringConverter(), ExplodeConverter(field="items", target_field="item")])


class FailingInitConverter(IdentityConverter):
    def init(self, context):
        raise RuntimeError("init failed")


class TestConverterChain:
    """Test ConverterChain functionality."""

    def test_requires_converters(self):
        """Test an empty chain is rejected."""
        with pytest.raises(ValueError):
            ConverterChain([])

    def test_init_initializes_members(self, context):
        """Test members share the chain's task context."""
        chain = json_explode_chain().init(context)
        assert all(c.state is ConverterState.INITIALIZED for c in chain.converters)
        assert all(c.context is context for c in chain.converters)

    def test_flat_maps_records(self, context):
        """Test each member's output feeds the next member."""
        chain = json_explode_chain().init(context)
        schema = chain.convert_schema(None, context)

        output = list(chain.convert_record(schema, '{"id": 1, "items": ["a", "b"]}', context))

        assert [r["item"] for r in output] == ["a", "b"]
        json_converter, explode_converter = chain.converters
        assert (chain.records_in.count, chain.records_out.count) == (1, 2)
        assert (json_converter.records_in.count, json_converter.records_out.count) == (1, 1)
        assert (explode_converter.records_in.count, explode_converter.records_out.count) == (1, 2)

    def test_chained_schemas(self, context):
        """Test schemas flow through every member."""

        class SuffixConverter(IdentityConverter):
            def convert_schema(self, input_schema, context):
                return f"{input_schema}+{type(self).__name__}"

        chain = ConverterChain([SuffixConverter(), SuffixConverter()]).init(context)
        assert chain.convert_schema("s", context) == "s+SuffixConverter+SuffixConverter"

    def test_first_member_failure_counted_by_chain(self, context):
        """Test failures of the first member fail the chain call."""
        chain = json_explode_chain().init(context)
        with pytest.raises(DataConversionError):
            chain.convert_record(None, "{broken", context)

        assert chain.records_exception.count == 1
        assert chain.converters[0].records_exception.count == 1

    def test_downstream_failure_raised_on_consumption(self, context):
        """Test failures of later members surface while consuming the output."""
        chain = json_explode_chain().init(context)
        result = chain.convert_record(None, '{"items": "not a list"}', context)

        with pytest.raises(DataConversionError):
            list(result)
        assert chain.records_exception.count == 0
        assert chain.converters[1].records_exception.count == 1

    def test_restartable_output(self, context):
        """Test the chain output can be traversed again when its source allows."""
        chain = ConverterChain([IdentityConverter(), IdentityConverter()]).init(context)
        result = chain.convert_record(None, "r", context)

        assert list(result) == ["r"]
        assert list(result) == ["r"]
        assert chain.records_out.count == 2

    def test_close_closes_members(self, context):
        """Test closing the chain closes every member and metric scope."""
        chain = json_explode_chain().init(context)
        chain.close()

        assert chain.state is ConverterState.CLOSED
        assert all(c.state is ConverterState.CLOSED for c in chain.converters)
        assert context.metric_context.get_children() == {}

    def test_member_init_failure_closes_chain(self, context):
        """Test a failing member init releases the chain and the members already initialized."""
        chain = ConverterChain([IdentityConverter(), FailingInitConverter()])

        with pytest.raises(RuntimeError, match="init failed"):
            chain.init(context)

        assert chain.state is ConverterState.CLOSED
        assert chain.converters[0].state is ConverterState.CLOSED
        assert context.metric_context.get_children() == {}


class TestTaskRunner:
    """Test TaskRunner functionality."""

    RECORDS = ['{"items": [1, 2]}', "{broken", '{"items": []}', '{"items": [3]}']

    def test_run(self, context):
        """Test converting, skipping failures and closing the converter."""
        chain = json_explode_chain()
        output = []

        stats = TaskRunner(chain, context).run(self.RECORDS, sink=output.append)

        assert [r["item"] for r in output] == [1, 2, 3]
        assert stats.input_records == 4
        assert stats.output_records == 3
        assert stats.failed_records == 1
        assert stats.duration >= 0.0
        assert chain.state is ConverterState.CLOSED

    def test_metrics_summary(self, context):
        """Test the run reports per-converter metrics before closing."""
        stats = TaskRunner(json_explode_chain(), context).run(self.RECORDS)

        chain_metrics = stats.metrics["test_job.ConverterChain"]
        assert chain_metrics["records_in"] == 4
        assert chain_metrics["records_out"] == 3
        assert chain_metrics["records_failed"] == 1
        assert stats.metrics["test_job.ExplodeConverter"]["records_in"] == 3

    def test_no_metrics_report(self, context):
        """Test metrics reporting can be turned off."""
        stats = TaskRunner(json_explode_chain(), context, report_metrics=False).run(self.RECORDS)
        assert stats.metrics == {}

    def test_max_records(self, context):
        """Test the run stops after max_records inputs."""
        stats = TaskRunner(json_explode_chain(), context, max_records=1).run(self.RECORDS)
        assert stats.input_records == 1
        assert stats.output_records == 2

    def test_max_records_pulls_no_extra_input(self, context):
        """Test the run reads no input beyond max_records."""
        pulled = []

        def records():
            for record in self.RECORDS:
                pulled.append(record)
                yield record

        TaskRunner(json_explode_chain(), context, max_records=1).run(records())

        assert pulled == self.RECORDS[:1]

    def test_failed_record_delivers_no_partial_output(self, context):
        """Test outputs of a record failing in a later chain member never reach the sink."""
        chain = ConverterChain([ExplodeConverter(field="xs"), JsonStringConverter(field="xs")])
        output = []

        stats = TaskRunner(chain, context).run(
            [{"xs": ["1", "bad", "3"]}, {"xs": ["4"]}],
            sink=output.append,
        )

        assert output == [{"xs": 4}]
        assert stats.input_records == 2
        assert stats.output_records == 1
        assert stats.failed_records == 1

    def test_init_failure_closes_converters(self, context):
        """Test a failing init still releases the converters and their metric scopes."""
        chain = ConverterChain([IdentityConverter(), FailingInitConverter()])

        with pytest.raises(RuntimeError, match="init failed"):
            TaskRunner(chain, context).run(["r"])

        assert chain.state is ConverterState.CLOSED
        assert chain.converters[0].state is ConverterState.CLOSED
        assert context.metric_context.get_children() == {}

    def test_max_failures(self, context):
        """Test too many failures abort the run but still close the converter."""
        chain = json_explode_chain()
        with pytest.raises(DataConversionError):
            TaskRunner(chain, context, max_failures=0).run(self.RECORDS)
        assert chain.state is ConverterState.CLOSED

    def test_other_errors_abort(self, context):
        """Test non-conversion errors propagate from the run."""

        def failing_sink(record):
            raise OSError("sink down")

        with pytest.raises(OSError, match="sink down"):
            TaskRunner(json_explode_chain(), context).run(self.RECORDS, sink=failing_sink)

    def test_from_config(self):
        """Test building the runner from configuration."""
        config = PipelineConfig.from_dict(
            {
                "task": {"task_id": "task_9", "job_name": "orders", "max_records": 10},
                "converters": [
                    {"name": "json_string"},
                    {"name": "identity", "enabled": False},
                    {"name": "explode", "params": {"field": "items"}},
                ],
                "metrics": {"reservoir_size": 42, "tags": {"env": "test"}},
            }
        )

        runner = TaskRunner.from_config(config)

        assert [type(c).__name__ for c in runner.converter.converters] == [
            "JsonStringConverter",
            "ExplodeConverter",
        ]
        assert runner.max_records == 10
        assert runner.context.task_id == "task_9"
        assert runner.context.metric_context.tags["env"] == "test"
        assert runner.context.metric_context.reservoir_size == 42

    def test_from_config_all_disabled(self):
        """Test a configuration with every converter disabled is rejected."""
        config = PipelineConfig.from_dict({"converters": [{"name": "identity", "enabled": False}]})
        with pytest.raises(ValueError):
            TaskRunner.from_config(config)


class TestCli:
    """Test the command line interface."""

    def test_run_command(self, tmp_path, monkeypatch, capsys):
        """Test converting a JSON lines file end to end."""
        config_file = tmp_path / "pipeline.yaml"
        config_file.write_text(
            """
task:
  task_id: cli_task
converters:
  - name: explode
    params:
      field: items
      target_field: item
"""
        )
        input_file = tmp_path / "input.jsonl"
        input_file.write_text('{"items": [1, 2]}\n\n{"items": "bad"}\n{"items": [3]}\n')
        output_file = tmp_path / "output.jsonl"

        monkeypatch.setattr(
            sys,
            "argv",
            ["datamover", "run", "-c", str(config_file), "-i", str(input_file), "-o", str(output_file)],
        )
        cli.main()

        lines = output_file.read_text().splitlines()
        assert [json.loads(line)["item"] for line in lines] == [1, 2, 3]
        captured = capsys.readouterr().out
        assert "Input records: 3" in captured
        assert "Failed records: 1" in captured

    def test_list_command(self, monkeypatch, capsys):
        """Test listing registered converters."""
        monkeypatch.setattr(sys, "argv", ["datamover", "list"])
        cli.main()
        assert "arrow_schema" in capsys.readouterr().out.split()
