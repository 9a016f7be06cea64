from lyrics_loader.cli import main

main()
