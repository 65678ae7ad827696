from kusto_tool.cli.main import run

run()
