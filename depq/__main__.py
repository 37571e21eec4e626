from depq.cli import main

raise SystemExit(main())
