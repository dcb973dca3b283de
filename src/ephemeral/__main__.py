from ephemeral.app.main import main

raise SystemExit(main())
