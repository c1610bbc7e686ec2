from holiday_card_web.cli import main

raise SystemExit(main())
