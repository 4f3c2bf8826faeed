from envshell.cli import main

raise SystemExit(main())
