from .app import main_cli

main_cli()
