from statsrelay.main import main

main()
