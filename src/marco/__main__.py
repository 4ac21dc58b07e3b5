from marco.cli.main import main

raise SystemExit(main())
