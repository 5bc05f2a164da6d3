from tagcut.handler.main import main

raise SystemExit(main())
