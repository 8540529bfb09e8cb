from tm_sync import main

main()
