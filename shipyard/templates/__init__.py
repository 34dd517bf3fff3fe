# shipyard/templates/__init__.py
"""Built-in deploy scripts.

Scripts use ``$DEPLOY_PATH``, ``$BRANCH``, ``$APP_NAME``, ``$DOMAIN`` and
``$NODE_VERSION`` placeholders, substituted before upload. Atomic scripts run
inside a fresh clone, so they never pull.
"""

from typing import Dict, Tuple

CUSTOM_SCRIPT = """# Custom deployment script
cd $DEPLOY_PATH
"""

_NODE_PRELUDE = """#!/bin/bash
set -e

# Source profile to ensure node/npm are in PATH (nvm, etc.)
export NVM_DIR="$HOME/.nvm"
[ -s "$NVM_DIR/nvm.sh" ] && \\. "$NVM_DIR/nvm.sh"
[ -s "/usr/local/nvm/nvm.sh" ] && \\. "/usr/local/nvm/nvm.sh"

# Use specific Node.js version if specified
if [ -n "$NODE_VERSION" ]; then
    echo "Using Node.js version $NODE_VERSION..."
    nvm use $NODE_VERSION || nvm install $NODE_VERSION
fi
"""

LARAVEL_IN_PLACE = """cd $DEPLOY_PATH

# Pull latest changes
git pull origin $BRANCH

# Install PHP dependencies
composer install --no-dev --no-interaction --prefer-dist --optimize-autoloader

# Install NPM dependencies and build assets (if needed)
if [ -f "package.json" ]; then
    npm install
    npm run build
fi

# Run Laravel optimizations
php artisan optimize:clear
php artisan migrate --force
php artisan optimize
php artisan view:cache
php artisan event:cache

# Restart queue workers (if using)
php artisan queue:restart

echo "Deployment completed successfully!"
"""

LARAVEL_ATOMIC = """#!/bin/bash
set -e

cd $DEPLOY_PATH

# Install PHP dependencies
composer install --no-dev --no-interaction --prefer-dist --optimize-autoloader

# Install NPM dependencies and build assets (if needed)
if [ -f "package.json" ]; then
    npm install
    npm run build
fi

# Create public/storage symlink (storage/app/public lives in shared/)
php artisan storage:link --force

# Run Laravel optimizations
php artisan optimize:clear
php artisan migrate --force
php artisan optimize
php artisan view:cache
php artisan event:cache

# Restart queue workers (if using)
php artisan queue:restart

echo "Deployment completed successfully!"
"""

NODEJS_IN_PLACE = _NODE_PRELUDE + """
cd $DEPLOY_PATH

# Pull latest changes
git pull origin $BRANCH

# Install dependencies
npm install

# Build the application
npm run build

# Restart the application with PM2
pm2 restart $APP_NAME || pm2 start npm --name "$APP_NAME" -- start

echo "Deployment completed successfully!"
"""

NODEJS_ATOMIC = _NODE_PRELUDE + """
cd $DEPLOY_PATH

# Install dependencies
npm install

# Build the application
npm run build

echo "Deployment completed successfully!"
"""

STATIC_IN_PLACE = _NODE_PRELUDE + """
cd $DEPLOY_PATH

# Pull latest changes
git pull origin $BRANCH

# Install dependencies and build (if needed)
if [ -f "package.json" ]; then
    echo "Installing dependencies..."
    npm install
    echo "Building project..."
    npm run build
fi

echo "Deployment completed successfully!"
"""

STATIC_ATOMIC = _NODE_PRELUDE + """
cd $DEPLOY_PATH

# Install dependencies and build (if needed)
if [ -f "package.json" ]; then
    echo "Installing dependencies..."
    npm install
    echo "Building project..."
    npm run build
fi

echo "Deployment completed successfully!"
"""

# (kind value, atomic) -> script
DEFAULT_SCRIPTS: Dict[Tuple[str, bool], str] = {
    ("laravel", False): LARAVEL_IN_PLACE,
    ("laravel", True): LARAVEL_ATOMIC,
    ("nodejs", False): NODEJS_IN_PLACE,
    ("nodejs", True): NODEJS_ATOMIC,
    ("static", False): STATIC_IN_PLACE,
    ("static", True): STATIC_ATOMIC,
}


def default_deploy_script(kind: str, atomic: bool) -> str:
    """Get the built-in script for an application kind and strategy"""
    return DEFAULT_SCRIPTS.get((kind, atomic), CUSTOM_SCRIPT)
