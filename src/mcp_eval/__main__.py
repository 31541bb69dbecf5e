from mcp_eval.cli import cli

if __name__ == "__main__":
    cli()
