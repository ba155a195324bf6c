from race_replay.cli import main

main()
