from admin_provisioner.cli.main import main

raise SystemExit(main())
