from file_searcher.cli import main

main()
