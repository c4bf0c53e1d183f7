import sys

from usenet_post.presentation.cli import main

sys.exit(main())
