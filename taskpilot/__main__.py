from taskpilot.cli import run

run()
