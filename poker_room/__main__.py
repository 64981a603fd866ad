from poker_room.main import cli

cli()
