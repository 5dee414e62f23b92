"""
Tests for the hpk-exec command line interface.
"""

import json
import sys

import pytest

from hpk.cli.main import create_parser, main


class TestRunCommand:
    """hpk-exec run"""

    def test_success_prints_output(self, python_script, capsys):
        script = python_script("print('hello from child')")

        exit_code = main(['run', sys.executable, str(script)])

        assert exit_code == 0
        assert capsys.readouterr().out == "hello from child\n"

    def test_arguments_forwarded(self, python_script, capsys):
        script = python_script("import sys; sys.stdout.write('|'.join(sys.argv[1:]))")

        exit_code = main(['run', sys.executable, str(script), 'one', 'two words'])

        assert exit_code == 0
        assert capsys.readouterr().out == "one|two words"

    def test_failure_relays_exit_code(self, python_script, capsys):
        script = python_script("""
            import sys
            sys.stdout.write('partial')
            sys.exit(7)
        """)

        exit_code = main(['run', sys.executable, str(script)])

        assert exit_code == 7
        assert capsys.readouterr().out == "partial"

    def test_failure_logged(self, python_script, caplog):
        script = python_script("import sys; sys.exit(4)")

        main(['run', sys.executable, str(script)])

        assert any("failed" in record.getMessage() for record in caplog.records)

    def test_missing_program(self, capsys, caplog):
        exit_code = main(['run', 'hpk-definitely-not-a-real-program'])

        assert exit_code == 127
        assert capsys.readouterr().out == ""
        assert any("could not start process" in record.getMessage() for record in caplog.records)

    def test_working_directory(self, tmp_path, python_script, capsys):
        (tmp_path / "input.txt").write_text("from dir")
        script = python_script("import sys; sys.stdout.write(open('input.txt').read())")

        exit_code = main(['run', '--dir', str(tmp_path), sys.executable, str(script)])

        assert exit_code == 0
        assert capsys.readouterr().out == "from dir"

    def test_env_overlay(self, python_script, capsys):
        script = python_script("import os, sys; sys.stdout.write(os.environ['HPK_CLI_VAR'])")

        exit_code = main(['run', '--env', 'HPK_CLI_VAR=first', '--env', 'HPK_CLI_VAR=second',
                          sys.executable, str(script)])

        assert exit_code == 0
        assert capsys.readouterr().out == "second"

    def test_config_file_env_overridden_by_flag(self, tmp_path, python_script, capsys):
        config_path = tmp_path / "launcher.yaml"
        config_path.write_text("environment:\n  - HPK_CLI_VAR=config\n  - HPK_OTHER=kept\n")
        script = python_script(
            "import os, sys; sys.stdout.write(os.environ['HPK_CLI_VAR'] + ',' + os.environ['HPK_OTHER'])"
        )

        exit_code = main(['run', '--config', str(config_path), '--env', 'HPK_CLI_VAR=flag',
                          sys.executable, str(script)])

        assert exit_code == 0
        assert capsys.readouterr().out == "flag,kept"

    def test_invalid_env_flag(self, capsys):
        exit_code = main(['run', '--env', 'NOEQUALS', 'true'])
        assert exit_code == 2

    def test_invalid_config(self, tmp_path, capsys):
        config_path = tmp_path / "launcher.yaml"
        config_path.write_text("unknown: 1\n")

        exit_code = main(['run', '--config', str(config_path), 'true'])

        assert exit_code == 2

    def test_stream(self, python_script, capsys):
        script = python_script("""
            import sys
            for i in range(3):
                sys.stdout.write(f'chunk {i}\\n'); sys.stdout.flush()
        """)

        exit_code = main(['run', '--stream', sys.executable, str(script)])

        assert exit_code == 0
        assert capsys.readouterr().out == "chunk 0\nchunk 1\nchunk 2\n"

    def test_json(self, python_script, capsys):
        script = python_script("import sys; sys.stdout.write('data'); sys.exit(3)")

        exit_code = main(['run', '--json', sys.executable, str(script)])

        assert exit_code == 3
        report = json.loads(capsys.readouterr().out)
        assert report == {"success": False, "output": "data", "exit_code": 3}

    def test_json_success(self, python_script, capsys):
        script = python_script("import sys; sys.stdout.write('ok')")

        exit_code = main(['run', '--json', sys.executable, str(script)])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out) == {"success": True, "output": "ok", "exit_code": 0}


class TestExecStringCommand:
    """hpk-exec exec-string"""

    def test_success(self, capsys):
        exit_code = main(['exec-string', 'echo hi'])

        assert exit_code == 0
        assert capsys.readouterr().out == "hi\n"

    def test_empty_command_line(self, capsys):
        exit_code = main(['exec-string', ''])

        assert exit_code == 2
        assert capsys.readouterr().out == ""

    def test_missing_program(self, capsys):
        assert main(['exec-string', 'hpk-definitely-not-a-real-program now']) == 127


class TestParser:
    """Argument parsing."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_run_defaults(self):
        args = create_parser().parse_args(['run', 'prog', 'arg'])

        assert args.program == 'prog'
        assert args.arguments == ['arg']
        assert args.dir == ''
        assert args.env is None
        assert args.stream is False
        assert args.json is False
        assert args.log_level is None

    def test_stream_and_json_exclusive(self, capsys):
        """Streamed output and the JSON report would share stdout."""
        with pytest.raises(SystemExit):
            create_parser().parse_args(['run', '--stream', '--json', 'prog'])

        assert "not allowed with" in capsys.readouterr().err

    def test_invalid_log_level_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['run', '--log-level', 'loud', 'prog'])
