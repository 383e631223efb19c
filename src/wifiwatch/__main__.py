from wifiwatch.cli import main

raise SystemExit(main())
