from tfc_workspace_teardown.cli import main

raise SystemExit(main())
