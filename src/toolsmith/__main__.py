from toolsmith.cli.main import main

main()
