"""Run the application's click commands from a test."""

from typing import Any, List, Optional

from click.testing import Result


class InteractsWithConsole:

    code: Optional[int] = None
    command_output: str = ''
    command_result: Optional[Result] = None

    def run_command(self, command: str, *args: Any, **options: Any) -> int:
        """
        Invoke a registered CLI command.

        Keyword options become ``--long-options``: ``True`` adds a bare flag,
        ``False`` and ``None`` are skipped. Exceptions raised by the command
        propagate.

        Returns:
            The command's exit code
        """
        cli_args: List[str] = command.split() + [str(arg) for arg in args]
        for name, value in options.items():
            flag = '--' + name.replace('_', '-')
            if value is True:
                cli_args.append(flag)
            elif value is not False and value is not None:
                cli_args.extend([flag, str(value)])

        runner = self.app.test_cli_runner()
        result = runner.invoke(args=cli_args, catch_exceptions=False)

        self.command_result = result
        self.command_output = result.output
        self.code = result.exit_code
        return self.code

    def see_command_output(self, text: str) -> 'InteractsWithConsole':
        assert text in self.command_output, f"Command output does not contain [{text}]"
        return self

    def see_exit_code(self, code: int) -> 'InteractsWithConsole':
        assert self.code == code, f"Expected exit code {code}, got {self.code}"
        return self
