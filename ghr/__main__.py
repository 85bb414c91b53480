from ghr.cli.app import main

main()
